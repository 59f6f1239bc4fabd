"""Resolve a track by id or name, then update it by id."""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum

from robot_core.errors import AmbiguousTrackError, TrackNotFoundError
from robot_core.search import CONTINUE, Stop, Visit, compile_query

from .models import Track, TrackUpdate
from .store import BuildStore

__all__ = ["ID_OR_NAME", "ResolutionState", "TrackResolver", "set_track"]

logger = logging.getLogger(__name__)

ID_OR_NAME = compile_query("Id == $ or Name == $", "$")


class ResolutionState(Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


class TrackResolver:
    """Finds the one track a user token refers to.

    The token may be a track id or a track name. Resolution fails on a second
    match instead of picking one.
    """

    def __init__(self, store: BuildStore) -> None:
        self.store = store
        self.state = ResolutionState.UNRESOLVED
        self.track_id = ""

    def resolve(self, token: str) -> str:
        self.state = ResolutionState.RESOLVING
        self.track_id = ""

        def visit(entry: Track) -> Visit:
            if self.track_id:
                self.state = ResolutionState.AMBIGUOUS
                return Stop(AmbiguousTrackError(token, [self.track_id, entry.id]))
            self.track_id = entry.id
            return CONTINUE

        self.store.search_tracks(ID_OR_NAME(token), visit)
        if not self.track_id:
            self.state = ResolutionState.NOT_FOUND
            raise TrackNotFoundError(token)
        self.state = ResolutionState.RESOLVED
        logger.debug("resolved track %r to %s", token, self.track_id)
        return self.track_id


def set_track(store: BuildStore, token: str | None, update: TrackUpdate) -> Track:
    """Apply ``update`` to the track named by ``token``.

    Without a token the update is sent as-is and the server decides whether it
    creates a track or updates one.
    """

    if token:
        update = replace(update, id=TrackResolver(store).resolve(token))
    return store.update_track(update)
