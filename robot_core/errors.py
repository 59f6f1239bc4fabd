"""Typed errors raised by the robot client."""

from __future__ import annotations

from typing import Sequence


class RobotError(Exception):
    """Base class for robot client errors."""


class ConfigError(RobotError):
    """Raised when the client configuration holds unusable values."""


class QueryError(RobotError):
    """Base class for query language errors."""


class QueryParseError(QueryError):
    """Raised when search text does not follow the query grammar."""

    def __init__(self, message: str, *, text: str = "", position: int = 0) -> None:
        super().__init__(f"{message} at offset {position}" if text else message)
        self.reason = message
        self.text = text
        self.position = position


class MalformedQueryError(QueryError):
    """User supplied search text could not be compiled."""


class QueryBindingError(QueryError):
    """Raised when placeholders are bound incorrectly or left unbound."""


class QueryEvaluationError(QueryError):
    """Raised when a query cannot be evaluated against a record."""


class RemoteError(RobotError):
    """Any failure talking to the build server."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class TrackResolutionError(RobotError):
    """Base class for failures resolving an id or name to a single track."""

    def __init__(self, message: str, token: str) -> None:
        super().__init__(message)
        self.token = token


class TrackNotFoundError(TrackResolutionError):
    """Raised when no track matches the supplied id or name."""

    def __init__(self, token: str) -> None:
        super().__init__(f"No tracks matched {token!r}", token)


class AmbiguousTrackError(TrackResolutionError):
    """Raised when more than one track matches the supplied id or name."""

    def __init__(self, token: str, candidates: Sequence[str]) -> None:
        message = f"Multiple tracks matched {token!r}: {', '.join(candidates)}"
        super().__init__(message, token)
        self.candidates = tuple(candidates)


class GitError(RobotError):
    """Raised when the git collaborator cannot answer a question."""
