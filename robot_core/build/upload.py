"""Upload drivers: stash each file, then let an uploader register it."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from robot_core.errors import RobotError
from robot_core.stash import StashEntry, StashStore

from .inference import BuildFlags, infer_build_information
from .models import BuildInformation
from .store import BuildStore

if TYPE_CHECKING:
    from robot_core.remote import RobotConnection

__all__ = [
    "BuildUploader",
    "FileOutcome",
    "StashUploader",
    "UploadResult",
    "Uploader",
    "upload_files",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    stash_id: str
    set_id: str | None = None
    merged: bool = False


@dataclass(frozen=True)
class FileOutcome:
    path: Path
    result: UploadResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Uploader(ABC):
    """What to do with each file once its bytes are in the stash."""

    @abstractmethod
    def prepare(self, connection: "RobotConnection") -> None:
        """Called once per batch, before the first file."""

    @abstractmethod
    def process(self, entry: StashEntry) -> UploadResult:
        """Called once per successfully stashed file."""


class StashUploader(Uploader):
    def prepare(self, connection: "RobotConnection") -> None:
        return None

    def process(self, entry: StashEntry) -> UploadResult:
        return UploadResult(stash_id=entry.id)


class BuildUploader(Uploader):
    """Registers each stashed file as a build artifact."""

    def __init__(
        self,
        flags: BuildFlags,
        *,
        infer: Callable[[BuildFlags], BuildInformation] = infer_build_information,
    ) -> None:
        self.flags = flags
        self.infer = infer
        self.store: BuildStore | None = None
        self.info: BuildInformation | None = None

    def prepare(self, connection: "RobotConnection") -> None:
        self.info = self.infer(self.flags)
        self.store = BuildStore(connection)

    def process(self, entry: StashEntry) -> UploadResult:
        if self.store is None or self.info is None:
            raise RuntimeError("prepare() must be called before process()")
        set_id, merged = self.store.add(entry.id, self.info)
        if merged:
            logger.info("Merged with build set %s", set_id)
        else:
            logger.info("New build set %s", set_id)
        return UploadResult(stash_id=entry.id, set_id=set_id, merged=merged)


def upload_files(
    connection: "RobotConnection",
    uploader: Uploader,
    paths: Iterable[Path | str],
) -> list[FileOutcome]:
    """Upload every path in order.

    A failing file is recorded and the batch moves on to the next one.
    """

    uploader.prepare(connection)
    stash = StashStore(connection)
    outcomes: list[FileOutcome] = []
    for raw in paths:
        path = Path(raw)
        try:
            entry = stash.upload_file(path)
            result = uploader.process(entry)
        except (RobotError, OSError) as exc:
            logger.error("Failed processing %s: %s", path, exc)
            outcomes.append(FileOutcome(path=path, error=exc))
            continue
        outcomes.append(FileOutcome(path=path, result=result))
    return outcomes
