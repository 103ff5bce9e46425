"""Pure data models and markup constants for the timeline document.

No I/O and no business logic. The markup strings below must stay
byte-for-byte identical to what existing ``rants.qmd`` files contain,
otherwise the planner will stop finding its anchors.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------

TIMELINE_CONTAINER = '<div class="rants-timeline">'
DAY_SECTION_OPEN = '<div class="rant-day" data-date="{date_key}">'
DAY_SECTION_PREFIX = '<div class="rant-day" data-date="'

ENTRY_TEMPLATE = (
    '<div class="rant-entry" id="{entry_id}">\n'
    '<div class="time-stamp">\n'
    "{display_time}\n"
    '<a href="#{entry_id}" class="rant-anchor" title="Link to this rant">🔗</a>\n'
    "</div>\n"
    '<div class="rant-content">\n'
    "{content}\n"
    "</div>\n"
    "</div>"
)

DAY_SECTION_TEMPLATE = (
    "<!-- {date_key} -->\n"
    '<div class="rant-day" data-date="{date_key}">\n'
    '<div class="date-header">\n'
    '<span class="date">{display_date}</span>\n'
    "</div>"
    "{body}"
    "\n\n</div>"
)

# Blank line that separates every spliced block from what precedes it.
BLOCK_SEPARATOR = "\n\n"

PREVIEW_LENGTH = 50


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Entry(BaseModel):
    """One rendered timeline entry, ready to be spliced into a document."""

    model_config = ConfigDict(frozen=True)

    id: str
    date_key: str
    display_date: str
    display_time: str
    raw_text: str
    linked_text: str
    created_at: datetime

    @property
    def html(self) -> str:
        """The entry block without surrounding whitespace."""
        return ENTRY_TEMPLATE.format(
            entry_id=self.id,
            display_time=self.display_time,
            content=self.linked_text,
        )

    @property
    def anchor(self) -> str:
        return f"#{self.id}"

    @property
    def preview(self) -> str:
        if len(self.raw_text) > PREVIEW_LENGTH:
            return self.raw_text[:PREVIEW_LENGTH] + "..."
        return self.raw_text


class DaySectionSummary(BaseModel):
    """Read-only view of one day section, as found by a scan."""

    date_key: str
    entry_ids: list[str] = Field(default_factory=list)

    @property
    def entry_count(self) -> int:
        return len(self.entry_ids)


class InsertResult(BaseModel):
    """Outcome of appending one entry to a document on disk."""

    entry: Entry
    document_path: Path
    new_section: bool
