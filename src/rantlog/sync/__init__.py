"""Git synchronization around timeline writes."""

from rantlog.sync.models import SyncMode, SyncOutcome, SyncState
from rantlog.sync.orchestrator import SyncOrchestrator, default_commit_message
from rantlog.sync.vcs import GitRepository, VersionControl

__all__ = [
    "GitRepository",
    "SyncMode",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncState",
    "VersionControl",
    "default_commit_message",
]
