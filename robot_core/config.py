"""Helper utilities for locating and reading the robot client configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import tomllib
from platformdirs import user_config_dir

from .errors import ConfigError

DEFAULT_APP_NAME = "robot"
CONFIG_FILE_NAME = "config.toml"
DEFAULT_SERVER_ADDRESS = "http://localhost:8081"

ENV_SERVER = "ROBOT_SERVER"
ENV_CONFIG = "ROBOT_CONFIG"
ENV_TOKEN = "ROBOT_TOKEN"

logger = logging.getLogger(__name__)


def default_config_path() -> Path:
    """Return the platform-specific default config path for the robot client."""

    base_dir = Path(user_config_dir(DEFAULT_APP_NAME, appauthor=False))
    return base_dir / CONFIG_FILE_NAME


@dataclass(frozen=True)
class ServerSettings:
    address: str = DEFAULT_SERVER_ADDRESS
    timeout_seconds: float = 30.0
    token: str | None = None


def _read_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable config %s: %s", path, exc)
        return {}


def load_server_settings(
    config_path: Path | str | None = None,
    *,
    address: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerSettings:
    """Resolve server settings from flags, environment and the config file.

    An explicit ``address`` wins over ``ROBOT_SERVER``, which wins over the
    ``[server]`` table of the config file.
    """

    env = os.environ if environ is None else environ
    if config_path is None:
        config_path = env.get(ENV_CONFIG) or default_config_path()
    payload = _read_config(Path(config_path))

    server = payload.get("server", {})
    if not isinstance(server, dict):
        raise ConfigError(f"{config_path}: [server] must be a table")

    resolved_address = address or env.get(ENV_SERVER) or server.get("address") or DEFAULT_SERVER_ADDRESS
    if not isinstance(resolved_address, str):
        raise ConfigError(f"{config_path}: server.address must be a string")

    timeout = server.get("timeout_seconds", 30.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigError(f"{config_path}: server.timeout_seconds must be a number")

    token = env.get(ENV_TOKEN) or server.get("token") or None
    if token is not None and not isinstance(token, str):
        raise ConfigError(f"{config_path}: server.token must be a string")

    return ServerSettings(
        address=resolved_address.strip(),
        timeout_seconds=max(float(timeout), 1.0),
        token=token,
    )
