"""Read-only view of a git working tree, built on the git CLI."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import GitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeList:
    sha: str
    subject: str


@dataclass(frozen=True)
class WorkingTreeStatus:
    entries: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.entries


class GitRepository:
    """Answers provenance questions about the repository containing ``root``."""

    def __init__(self, root: Path, *, executable: str = "git", timeout_seconds: float = 10.0) -> None:
        self.root = root
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    @classmethod
    def open(
        cls,
        path: Path | str = ".",
        *,
        executable: str = "git",
        timeout_seconds: float = 10.0,
    ) -> "GitRepository":
        """Locate the repository enclosing ``path``, raising :class:`GitError` if none."""

        probe = cls(Path(path), executable=executable, timeout_seconds=timeout_seconds)
        toplevel = probe._run("rev-parse", "--show-toplevel").strip()
        if not toplevel:
            raise GitError(f"{path} is not inside a git work tree")
        return cls(Path(toplevel), executable=executable, timeout_seconds=timeout_seconds)

    def head_cl(self) -> ChangeList:
        output = self._run("log", "-1", "--format=%H%x00%s")
        sha, _, subject = output.strip().partition("\x00")
        if not sha:
            raise GitError("HEAD has no commits")
        return ChangeList(sha=sha, subject=subject)

    def status(self) -> WorkingTreeStatus:
        output = self._run("status", "--porcelain")
        return WorkingTreeStatus(entries=tuple(line for line in output.splitlines() if line.strip()))

    def current_branch(self) -> str:
        branch = self._run("rev-parse", "--abbrev-ref", "HEAD").strip()
        if not branch or branch == "HEAD":
            raise GitError("HEAD is detached")
        return branch

    def _run(self, *args: str) -> str:
        if not self.root.is_dir():
            raise GitError(f"{self.root} is not a directory")
        command = [self.executable, *args]
        logger.debug("git command cwd=%s cmd=%s", self.root, " ".join(command))
        try:
            result = subprocess.run(
                command,
                cwd=self.root,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as exc:
            raise GitError("git CLI not found. Install git and ensure it is available in PATH.") from exc
        except subprocess.TimeoutExpired as exc:
            raise GitError(f"git command timed out after {self.timeout_seconds:.1f}s") from exc
        if result.returncode != 0:
            detail = (result.stderr or "").strip()
            raise GitError(f"git {' '.join(args)} failed (exit={result.returncode}): {detail}")
        return result.stdout
