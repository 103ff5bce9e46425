"""Pure data models for the synchronization state machine."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class SyncMode(StrEnum):
    """How far past the document write an invocation should go."""

    NONE = "none"
    STAGE = "stage"
    COMMIT = "commit"
    PUBLISH = "publish"

    @property
    def pulls(self) -> bool:
        return self is SyncMode.PUBLISH

    @property
    def stages(self) -> bool:
        return self is not SyncMode.NONE

    @property
    def commits(self) -> bool:
        return self in (SyncMode.COMMIT, SyncMode.PUBLISH)

    @property
    def pushes(self) -> bool:
        return self is SyncMode.PUBLISH


class SyncState(StrEnum):
    """States of one orchestrated run."""

    CLEAN = "clean"
    PULLED = "pulled"
    WRITTEN = "written"
    STAGED = "staged"
    COMMITTED = "committed"
    PUSHED = "pushed"
    ABORTED = "aborted"


# Every non-terminal state may also move to ABORTED.
TRANSITIONS: dict[SyncState, frozenset[SyncState]] = {
    SyncState.CLEAN: frozenset({SyncState.PULLED, SyncState.WRITTEN}),
    SyncState.PULLED: frozenset({SyncState.WRITTEN}),
    SyncState.WRITTEN: frozenset({SyncState.STAGED}),
    SyncState.STAGED: frozenset({SyncState.COMMITTED}),
    SyncState.COMMITTED: frozenset({SyncState.PUSHED}),
    SyncState.PUSHED: frozenset(),
    SyncState.ABORTED: frozenset(),
}


class SyncOutcome(BaseModel):
    """Where a run ended up and what it produced."""

    state: SyncState
    history: list[SyncState] = Field(default_factory=list)
    unchanged: bool = False
    failed_stage: str | None = None
    commit_message: str | None = None
    result: Any = None

    @property
    def aborted(self) -> bool:
        return self.state is SyncState.ABORTED

    @property
    def wrote_document(self) -> bool:
        return SyncState.WRITTEN in self.history
