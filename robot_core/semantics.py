"""Guess what vertex streams hold from their names."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

__all__ = ["Semantic", "SEMANTIC_RULES", "VertexStream", "guess_semantics"]


class Semantic(str, Enum):
    POSITION = "Position"
    NORMAL = "Normal"
    TANGENT = "Tangent"
    BITANGENT = "Bitangent"
    TEXCOORD = "Texcoord"


# Ordered from highest priority to lowest
SEMANTIC_RULES: tuple[tuple[str, Semantic], ...] = (
    ("position", Semantic.POSITION),
    ("normal", Semantic.NORMAL),
    ("tangent", Semantic.TANGENT),
    ("bitangent", Semantic.BITANGENT),
    ("binormal", Semantic.BITANGENT),
    ("texcoord", Semantic.TEXCOORD),
    ("pos", Semantic.POSITION),
    ("uv", Semantic.TEXCOORD),
    ("vertex", Semantic.POSITION),
)


@dataclass
class VertexStream:
    name: str
    semantic: Semantic | None = None


def guess_semantics(
    streams: Iterable[VertexStream],
    rules: Sequence[tuple[str, Semantic]] = SEMANTIC_RULES,
) -> None:
    """Label ``streams`` in place.

    Each semantic is given to at most one stream: the first stream whose
    lower-cased name contains the pattern of the highest priority rule for it.
    A later rule may relabel a stream an earlier rule already matched.
    """

    streams = list(streams)
    taken: set[Semantic] = set()
    for pattern, semantic in rules:
        if semantic in taken:
            continue
        for stream in streams:
            if pattern.lower() in stream.name.lower():
                stream.semantic = semantic
                taken.add(semantic)
                break
