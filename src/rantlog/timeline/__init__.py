"""Timeline document handling: entry formatting and insertion.

Two-phase: a pure phase (format the entry, plan the new text) that is
testable without touching disk, followed by a whole-file write.
"""

from rantlog.timeline.formatter import EntryFormatter, autolink
from rantlog.timeline.models import DaySectionSummary, Entry, InsertResult
from rantlog.timeline.planner import InsertionPlanner, scan_sections
from rantlog.timeline.services import append_entry, read_document, write_document

__all__ = [
    "DaySectionSummary",
    "Entry",
    "EntryFormatter",
    "InsertResult",
    "InsertionPlanner",
    "append_entry",
    "autolink",
    "read_document",
    "scan_sections",
    "write_document",
]
