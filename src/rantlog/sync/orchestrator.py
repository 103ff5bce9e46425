"""Sequencing pull, write, stage, commit and push around one document change.

    clean → pulled (publish only) → written → staged → committed → pushed

Each step runs once. A failure moves the run to ``aborted``, records the
failing stage and re-raises; later steps are skipped and nothing already
done is rolled back. In particular a failure after ``written`` leaves the
document modified on disk for the operator to inspect, amend or re-sync.

Races with other writers are left to git: the pull narrows the window
but a competing push can still land first, in which case our push is
rejected and the run aborts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from rantlog.config import SiteConfig
from rantlog.errors import RantError, SyncError
from rantlog.sync.models import TRANSITIONS, SyncMode, SyncOutcome, SyncState
from rantlog.sync.vcs import VersionControl

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMMIT_MESSAGE_TEMPLATE = "Add rant: {timestamp}"


def default_commit_message(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return COMMIT_MESSAGE_TEMPLATE.format(timestamp=now.strftime("%Y-%m-%d %H:%M:%S"))


class SyncOrchestrator:
    """Drives one site's repository through a single rant submission.

    The orchestrator is stateful for the duration of ``run``; the
    ``state``, ``history`` and ``failed_stage`` attributes stay readable
    after an aborted run so callers can report how far it got.
    """

    def __init__(self, site: SiteConfig, vcs: VersionControl) -> None:
        self._site = site
        self._vcs = vcs
        self._reset()

    def _reset(self) -> None:
        self.state = SyncState.CLEAN
        self.history: list[SyncState] = [SyncState.CLEAN]
        self.failed_stage: str | None = None
        self.result: Any = None

    def _advance(self, new_state: SyncState) -> None:
        if new_state is not SyncState.ABORTED and new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal sync transition {self.state} -> {new_state}")
        logger.debug("Sync state %s -> %s", self.state, new_state)
        self.state = new_state
        self.history.append(new_state)

    def _abort(self, stage: str, exc: Exception) -> None:
        self.failed_stage = stage
        self._advance(SyncState.ABORTED)
        logger.debug("Sync aborted during %s: %s", stage, exc)

    def _step(self, stage: str, operation: Callable[..., T], *args: Any) -> T:
        try:
            return operation(*args)
        except SyncError as exc:
            self._abort(stage, exc)
            raise

    def _outcome(self, *, unchanged: bool = False, message: str | None = None) -> SyncOutcome:
        return SyncOutcome(
            state=self.state,
            history=list(self.history),
            unchanged=unchanged,
            failed_stage=self.failed_stage,
            commit_message=message,
            result=self.result,
        )

    def run(
        self,
        mutate: Callable[[], Any],
        mode: SyncMode = SyncMode.NONE,
        *,
        message: str | None = None,
        now: datetime | None = None,
    ) -> SyncOutcome:
        """Run the sequence around ``mutate``.

        Args:
            mutate: Writes the document and returns whatever the caller
                wants back in ``SyncOutcome.result``. Only called after a
                successful pull (in publish mode).
            mode: How far to go after the write.
            message: Commit message; defaults to a timestamped one.
            now: Clock reading for the default commit message.

        Returns:
            SyncOutcome for a run that did not fail.

        Raises:
            SyncError: If a repository step fails.
            RantError: Whatever ``mutate`` raised (StructureError,
                DocumentIOError, ...).
        """
        self._reset()
        site = self._site

        if mode.pulls:
            logger.info("Pulling %s from %s", site.branch, site.remote)
            self._step("pull", self._vcs.pull, site.branch)
            self._advance(SyncState.PULLED)

        try:
            self.result = mutate()
        except RantError as exc:
            self._abort("write", exc)
            raise
        self._advance(SyncState.WRITTEN)

        if not mode.stages:
            return self._outcome()

        status = self._step("status", self._vcs.status, site.file)
        if not status.strip():
            logger.info("No changes to %s detected", site.file)
            return self._outcome(unchanged=True)

        self._step("add", self._vcs.add, site.file)
        self._advance(SyncState.STAGED)
        if not mode.commits:
            return self._outcome()

        commit_message = message or default_commit_message(now)
        self._step("commit", self._vcs.commit, commit_message, site.file)
        self._advance(SyncState.COMMITTED)
        if not mode.pushes:
            return self._outcome(message=commit_message)

        logger.info("Pushing to %s/%s", site.remote, site.branch)
        self._step("push", self._vcs.push, site.branch)
        self._advance(SyncState.PUSHED)
        return self._outcome(message=commit_message)
