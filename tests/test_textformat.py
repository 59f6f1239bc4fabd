"""Tests for the field: value entity rendering."""

from __future__ import annotations

import pytest

from robot_core.build import Artifact, BuildInformation, BuildType, DeviceInfo, Package, Track
from robot_core.stash import StashEntry
from robot_core.textformat import to_text


def test_track_renders_non_empty_fields() -> None:
    track = Track(id="t1", name="alpha", head="p1")
    assert to_text(track) == 'id: "t1"\nname: "alpha"\nhead: "p1"\n'


def test_nested_and_repeated_fields() -> None:
    package = Package(
        id="set-1",
        information=BuildInformation(
            type=BuildType.LOCAL,
            branch="main",
            builder=DeviceInfo(name="host", os="Linux"),
        ),
        artifacts=("a1", "a2"),
    )
    assert to_text(package) == (
        'id: "set-1"\n'
        "information: <\n"
        "  type: Local\n"
        '  branch: "main"\n'
        "  builder: <\n"
        '    name: "host"\n'
        '    os: "Linux"\n'
        "  >\n"
        ">\n"
        'artifacts: "a1"\n'
        'artifacts: "a2"\n'
    )


def test_mappings_render_sorted() -> None:
    artifact = Artifact(id="a1", tools={"gapis": "bin/gapis", "gapir": "bin/gapir"})
    assert to_text(artifact) == (
        'id: "a1"\n'
        "tools: <\n"
        '  key: "gapir"\n'
        '  value: "bin/gapir"\n'
        ">\n"
        "tools: <\n"
        '  key: "gapis"\n'
        '  value: "bin/gapis"\n'
        ">\n"
    )


def test_scalars_and_escaping() -> None:
    entry = StashEntry(id="abc", names=('say "hi"',), executable=True, length=12)
    assert to_text(entry) == 'id: "abc"\nnames: "say \\"hi\\""\nexecutable: true\nlength: 12\n'


def test_rendering_is_deterministic() -> None:
    first = Track(id="t1", name="alpha", description="x")
    second = Track(id="t1", name="alpha", description="x")
    assert to_text(first) == to_text(second)


def test_rejects_non_entities() -> None:
    with pytest.raises(TypeError):
        to_text({"id": "t1"})
    with pytest.raises(TypeError):
        to_text(Track)
