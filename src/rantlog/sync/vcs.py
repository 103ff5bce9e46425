"""Version-control port and its git implementation."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from rantlog.errors import SyncError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 120


class VersionControl(Protocol):
    """The five repository operations the orchestrator needs."""

    def pull(self, branch: str) -> None: ...

    def status(self, path: str) -> str: ...

    def add(self, path: str) -> None: ...

    def commit(self, message: str, path: str | None = None) -> None: ...

    def push(self, branch: str) -> None: ...


class GitRepository:
    """Runs git against one working tree via ``git -C``.

    Every failure (missing binary, timeout, non-zero exit) surfaces as a
    SyncError tagged with the operation that failed. Nothing is retried.
    """

    def __init__(
        self,
        repo_path: Path,
        remote: str = "origin",
        *,
        timeout: int = GIT_TIMEOUT,
    ) -> None:
        self._repo_path = repo_path
        self._remote = remote
        self._timeout = timeout

    @property
    def repo_path(self) -> Path:
        return self._repo_path

    def _run(self, stage: str, *args: str) -> str:
        cmd = ["git", "-C", str(self._repo_path), *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise SyncError(stage, "git not found on the PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise SyncError(stage, f"git timed out after {self._timeout}s") from exc

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()[:500]
            raise SyncError(stage, f"git {args[0]} exited {result.returncode}: {detail}")
        return result.stdout

    def pull(self, branch: str) -> None:
        self._run("pull", "pull", "--no-rebase", self._remote, branch)

    def status(self, path: str) -> str:
        """Porcelain status limited to ``path``; empty when unchanged."""
        return self._run("status", "status", "--porcelain", "--", path)

    def add(self, path: str) -> None:
        self._run("add", "add", "--", path)

    def commit(self, message: str, path: str | None = None) -> None:
        """Commit staged changes; with ``path``, only that file is committed."""
        if path is None:
            self._run("commit", "commit", "-m", message)
        else:
            self._run("commit", "commit", "-m", message, "--", path)

    def push(self, branch: str) -> None:
        self._run("push", "push", self._remote, branch)
