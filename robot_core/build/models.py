"""Entities held by the build server and the values uploaded to it."""

from __future__ import annotations

import platform
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

__all__ = [
    "Artifact",
    "BuildInformation",
    "BuildType",
    "DeviceInfo",
    "Package",
    "Track",
    "TrackUpdate",
]


class BuildType(str, Enum):
    """How sure we are that the working tree matches the uploaded build."""

    BUILD_BOT = "BuildBot"
    USER = "User"
    LOCAL = "Local"

    def __str__(self) -> str:
        return self.value


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class DeviceInfo:
    """The machine a build was produced on."""

    name: str = ""
    os: str = ""
    architecture: str = ""

    @classmethod
    def host(cls) -> "DeviceInfo":
        return cls(
            name=socket.gethostname(),
            os=platform.system(),
            architecture=platform.machine(),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "DeviceInfo | None":
        if not isinstance(data, Mapping):
            return None
        return cls(name=_str(data, "name"), os=_str(data, "os"), architecture=_str(data, "architecture"))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "os": self.os, "architecture": self.architecture}


@dataclass(frozen=True)
class BuildInformation:
    """Provenance of an upload, shared by every file of one upload session."""

    type: BuildType = BuildType.BUILD_BOT
    branch: str = ""
    cl: str = ""
    tag: str = ""
    description: str = ""
    builder: DeviceInfo | None = None
    uploader: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "BuildInformation | None":
        if not isinstance(data, Mapping):
            return None
        try:
            build_type = BuildType(data.get("type") or BuildType.BUILD_BOT.value)
        except ValueError:
            build_type = BuildType.BUILD_BOT
        return cls(
            type=build_type,
            branch=_str(data, "branch"),
            cl=_str(data, "cl"),
            tag=_str(data, "tag"),
            description=_str(data, "description"),
            builder=DeviceInfo.from_dict(data.get("builder")),
            uploader=_str(data, "uploader"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "branch": self.branch,
            "cl": self.cl,
            "tag": self.tag,
            "description": self.description,
            "builder": self.builder.to_dict() if self.builder else None,
            "uploader": self.uploader,
        }


@dataclass(frozen=True)
class Artifact:
    """A stashed build output, with the tools it was found to contain."""

    id: str
    host: DeviceInfo | None = None
    tools: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Artifact":
        raw_tools = data.get("tools") or {}
        tools = {str(k): str(v) for k, v in raw_tools.items()} if isinstance(raw_tools, Mapping) else {}
        return cls(id=_str(data, "id"), host=DeviceInfo.from_dict(data.get("host")), tools=tools)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "host": self.host.to_dict() if self.host else None,
            "tools": dict(self.tools),
        }


@dataclass(frozen=True)
class Package:
    """A build set: artifacts that share the same provenance."""

    id: str
    information: BuildInformation | None = None
    artifacts: tuple[str, ...] = ()
    parent: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Package":
        artifacts = data.get("artifacts") or ()
        return cls(
            id=_str(data, "id"),
            information=BuildInformation.from_dict(data.get("information")),
            artifacts=tuple(str(item) for item in artifacts),
            parent=_str(data, "parent"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "information": self.information.to_dict() if self.information else None,
            "artifacts": list(self.artifacts),
            "parent": self.parent,
        }


@dataclass(frozen=True)
class Track:
    """A named, mutable pointer to the package at the head of a lineage."""

    id: str
    name: str = ""
    description: str = ""
    head: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Track":
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            description=_str(data, "description"),
            head=_str(data, "head"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description, "head": self.head}


@dataclass(frozen=True)
class TrackUpdate:
    """Changes to apply to a track.

    ``None`` means the caller did not supply the field, and it is left out of
    the request. An empty string is sent as-is.
    """

    id: str | None = None
    name: str | None = None
    description: str | None = None
    head: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "head": self.head,
        }
        return {key: value for key, value in payload.items() if value is not None}
