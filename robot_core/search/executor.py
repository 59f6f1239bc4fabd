"""Streaming execution of compiled queries against a search domain."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, TypeVar, Union

from .query import Query

if TYPE_CHECKING:
    from robot_core.remote import RobotConnection

__all__ = [
    "CONTINUE",
    "Continue",
    "Domain",
    "Stop",
    "Visit",
    "Visitor",
    "run_visitor",
    "search",
]

logger = logging.getLogger(__name__)

E = TypeVar("E")


class Domain(str, Enum):
    """The independently searchable entity kinds."""

    ARTIFACTS = "artifacts"
    PACKAGES = "packages"
    TRACKS = "tracks"
    STASH = "stash"


class Continue:
    """Visitor result asking for the next entity."""

    _instance: "Continue | None" = None

    def __new__(cls) -> "Continue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CONTINUE"


CONTINUE = Continue()


@dataclass(frozen=True)
class Stop:
    """Visitor result ending the search; ``error`` becomes the search outcome."""

    error: Exception


Visit = Union[Continue, Stop]
Visitor = Callable[[E], Union[Visit, None]]


def run_visitor(entities: Iterable[E], visitor: Visitor[E]) -> int:
    """Feed ``entities`` to ``visitor`` one at a time.

    Returns the number of visited entities. A :class:`Stop` result raises its
    error immediately; no further entity is pulled from ``entities``.
    """

    visited = 0
    for entity in entities:
        visited += 1
        outcome = visitor(entity)
        if isinstance(outcome, Stop):
            raise outcome.error
    return visited


def search(
    connection: "RobotConnection",
    domain: Domain,
    query: Query,
    visitor: Visitor[E],
    decode: Callable[[Mapping[str, Any]], E],
) -> None:
    """Run ``query`` against ``domain`` and visit every decoded match.

    An empty result is not an error. Whether nothing found matters is for the
    caller to decide.
    """

    payload = query.to_dict()
    with connection.stream_search(domain.value, payload) as records:
        visited = run_visitor((decode(record) for record in records), visitor)
    logger.debug("search domain=%s query=%r visited=%s", domain.value, query.text, visited)
