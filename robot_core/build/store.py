"""Remote build store: search, add and track updates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from robot_core.errors import RemoteError
from robot_core.search import Domain, Query, Visitor, search

from .models import Artifact, BuildInformation, Package, Track, TrackUpdate

if TYPE_CHECKING:
    from robot_core.remote import RobotConnection

__all__ = ["BuildStore"]

log = logging.getLogger(__name__)


class BuildStore:
    """Typed view over the build endpoints of a :class:`RobotConnection`."""

    def __init__(self, connection: "RobotConnection") -> None:
        self.connection = connection

    def search_artifacts(self, query: Query, visitor: Visitor[Artifact]) -> None:
        search(self.connection, Domain.ARTIFACTS, query, visitor, Artifact.from_dict)

    def search_packages(self, query: Query, visitor: Visitor[Package]) -> None:
        search(self.connection, Domain.PACKAGES, query, visitor, Package.from_dict)

    def search_tracks(self, query: Query, visitor: Visitor[Track]) -> None:
        search(self.connection, Domain.TRACKS, query, visitor, Track.from_dict)

    def add(self, artifact_id: str, info: BuildInformation) -> tuple[str, bool]:
        """Register a stashed artifact, returning ``(set_id, merged)``."""

        payload = self.connection.post_json(
            "/v1/builds", {"id": artifact_id, "information": info.to_dict()}
        )
        set_id = str(payload.get("id") or "")
        if not set_id:
            raise RemoteError("build server returned no build set id")
        return set_id, bool(payload.get("merged"))

    def update_track(self, update: TrackUpdate) -> Track:
        log.debug("updating track %s", update.to_dict())
        payload = self.connection.post_json("/v1/tracks", update.to_dict())
        return Track.from_dict(payload)
