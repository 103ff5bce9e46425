"""Exception hierarchy shared by the planner, orchestrator and CLI."""

from __future__ import annotations


class RantError(Exception):
    """Base error for everything rantlog raises on purpose."""


class ConfigurationError(RantError):
    """A site could not be resolved or the config file is unusable."""


class StructureError(RantError):
    """The timeline document is missing a structural anchor needed for insertion."""


class DocumentIOError(RantError):
    """The timeline document could not be read or written.

    Attributes:
        operation: "read" or "write".
    """

    def __init__(self, message: str, operation: str = "write") -> None:
        super().__init__(message)
        self.operation = operation


class SyncError(RantError):
    """A version-control step failed.

    Attributes:
        stage: Which step failed ("pull", "status", "add", "commit", "push").
    """

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage} failed: {message}")
        self.stage = stage
