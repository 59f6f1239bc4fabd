"""Per-command option values built from parsed arguments."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

from robot_core.build import BuildFlags, TrackUpdate


@dataclass(frozen=True)
class UploadOptions:
    files: tuple[Path, ...]

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "UploadOptions":
        return cls(files=tuple(Path(name) for name in args.files))


@dataclass(frozen=True)
class BuildUploadOptions(UploadOptions):
    flags: BuildFlags = BuildFlags()

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "BuildUploadOptions":
        return cls(
            files=tuple(Path(name) for name in args.files),
            flags=BuildFlags(
                tag=args.tag or "",
                cl=args.cl or "",
                branch=args.branch or "",
                description=args.description or "",
                uploader=args.uploader or "",
            ),
        )


@dataclass(frozen=True)
class SearchOptions:
    expression: str

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "SearchOptions":
        return cls(expression=" ".join(args.query))


@dataclass(frozen=True)
class TrackSetOptions:
    token: str | None
    update: TrackUpdate

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "TrackSetOptions":
        return cls(
            token=args.track or None,
            update=TrackUpdate(name=args.name, description=args.description, head=args.package),
        )
