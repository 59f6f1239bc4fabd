"""Client library for the robot build-tracking service."""

from .config import ServerSettings, default_config_path, load_server_settings
from .errors import (
    AmbiguousTrackError,
    MalformedQueryError,
    QueryParseError,
    RemoteError,
    RobotError,
    TrackNotFoundError,
)
from .remote import RobotConnection, connect
from .search import Domain, Query, compile_query, compile_search
from .stash import StashEntry, StashStore
from .build import BuildStore, TrackResolver, set_track, upload_files

__all__ = [
    "AmbiguousTrackError",
    "BuildStore",
    "Domain",
    "MalformedQueryError",
    "Query",
    "QueryParseError",
    "RemoteError",
    "RobotConnection",
    "RobotError",
    "ServerSettings",
    "StashEntry",
    "StashStore",
    "TrackNotFoundError",
    "TrackResolver",
    "compile_query",
    "compile_search",
    "connect",
    "default_config_path",
    "load_server_settings",
    "set_track",
    "upload_files",
]
