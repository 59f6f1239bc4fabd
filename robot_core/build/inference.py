"""Best-effort guessing of build provenance from the environment."""

from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from robot_core.errors import GitError
from robot_core.git import GitRepository

from .models import BuildInformation, BuildType, DeviceInfo

__all__ = ["BuildFlags", "infer_build_information"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildFlags:
    """Provenance supplied on the command line; empty means "guess it"."""

    tag: str = ""
    cl: str = ""
    branch: str = ""
    description: str = ""
    uploader: str = ""


def _current_user() -> str:
    return getpass.getuser()


def infer_build_information(
    flags: BuildFlags,
    *,
    cwd: Path | str = ".",
    open_repository: Callable[[Path | str], GitRepository] = GitRepository.open,
    host: Callable[[], DeviceInfo] = DeviceInfo.host,
    current_user: Callable[[], str] = _current_user,
) -> BuildInformation:
    """Fill in whatever ``flags`` leaves empty. Never raises."""

    build_type = BuildType.BUILD_BOT
    cl = flags.cl
    description = flags.description
    branch = flags.branch
    uploader = flags.uploader

    try:
        repo = open_repository(cwd)
    except GitError as exc:
        logger.warning("Git failed: %s", exc)
        repo = None

    if repo is not None:
        build_type = BuildType.USER
        try:
            head = repo.head_cl()
        except GitError as exc:
            logger.warning("CL failed: %s", exc)
        else:
            if not cl:
                cl = head.sha
                logger.info("Detected CL %s", cl)
            if not description:
                description = head.subject
                logger.info("Detected description %s", description)
        try:
            status = repo.status()
        except GitError as exc:
            logger.warning("Status failed: %s", exc)
        else:
            if not status.clean:
                build_type = BuildType.LOCAL
        if not branch:
            try:
                branch = repo.current_branch()
            except GitError as exc:
                logger.warning("Branch failed: %s", exc)
            else:
                logger.info("Detected branch %s", branch)

    if not uploader:
        try:
            uploader = current_user()
        except (KeyError, OSError) as exc:
            logger.warning("User lookup failed: %s", exc)
        else:
            logger.info("Detected uploader %s", uploader)

    logger.info("Detected build type %s", build_type)
    return BuildInformation(
        type=build_type,
        branch=branch,
        cl=cl,
        tag=flags.tag,
        description=description,
        builder=host(),
        uploader=uploader,
    )
