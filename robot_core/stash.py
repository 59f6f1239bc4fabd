"""Client for the content addressed stash."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from .search import Domain, Query, Visitor, search

if TYPE_CHECKING:
    from .remote import RobotConnection

__all__ = ["StashEntry", "StashStore", "content_id"]

logger = logging.getLogger(__name__)


def content_id(data: bytes) -> str:
    """The stash id of ``data``."""

    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class StashEntry:
    id: str
    names: tuple[str, ...] = ()
    executable: bool = False
    status: str = ""
    length: int = 0
    timestamp: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StashEntry":
        names = data.get("names") or ()
        try:
            length = int(data.get("length") or 0)
        except (TypeError, ValueError):
            length = 0
        return cls(
            id=str(data.get("id", "")),
            names=tuple(str(name) for name in names),
            executable=bool(data.get("executable")),
            status=str(data.get("status") or ""),
            length=length,
            timestamp=str(data.get("timestamp") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "names": list(self.names),
            "executable": self.executable,
            "status": self.status,
            "length": self.length,
            "timestamp": self.timestamp,
        }


class StashStore:
    def __init__(self, connection: "RobotConnection") -> None:
        self.connection = connection

    def upload_file(self, path: Path | str) -> StashEntry:
        """Stash the bytes of ``path`` under their content id."""

        path = Path(path)
        data = path.read_bytes()
        entry_id = content_id(data)
        headers = {"X-Stash-Name": path.name}
        if path.stat().st_mode & 0o111:
            headers["X-Stash-Executable"] = "true"
        logger.info("Uploading %s as %s", path, entry_id)
        payload = self.connection.put_bytes(f"/v1/stash/{entry_id}", data, headers=headers)
        return StashEntry.from_dict(payload)

    def search(self, query: Query, visitor: Visitor[StashEntry]) -> None:
        search(self.connection, Domain.STASH, query, visitor, StashEntry.from_dict)
