"""Insertion planning: where a new entry goes inside a timeline document.

The planner works on positions in the raw text rather than on a parsed
tree. Only the insertion point is touched, so whitespace, comments and
hand edits elsewhere in the document survive byte-for-byte.

Ordering rules:

- within a day section, the new entry goes right after the header block
  (newest first);
- a new day section goes right before the first existing section, or
  right after the container marker when there are none.

A past-dated entry is therefore still placed before the first section
even when newer sections exist. Sections are never re-sorted.
"""

from __future__ import annotations

import logging
import re

from rantlog.errors import StructureError
from rantlog.timeline.models import (
    BLOCK_SEPARATOR,
    DAY_SECTION_OPEN,
    DAY_SECTION_PREFIX,
    DAY_SECTION_TEMPLATE,
    TIMELINE_CONTAINER,
    DaySectionSummary,
)

logger = logging.getLogger(__name__)

_HEADER_TAIL = (
    r'\s*<div class="date-header">'
    r'\s*<span class="date">[^<]+</span>'
    r"\s*</div>"
)
_SECTION_RE = re.compile(r'<div class="rant-day" data-date="([^"]*)">')
_ENTRY_ID_RE = re.compile(r'<div class="rant-entry" id="([^"]*)">')


def _header_re(date_key: str) -> re.Pattern[str]:
    return re.compile(re.escape(DAY_SECTION_OPEN.format(date_key=date_key)) + _HEADER_TAIL)


def _splice(text: str, position: int, block: str) -> str:
    return text[:position] + block + text[position:]


class InsertionPlanner:
    """Computes new document text with one entry spliced in."""

    def container_end(self, document_text: str) -> int:
        """Offset just past the container marker.

        Raises:
            StructureError: If the document has no container marker.
        """
        start = document_text.find(TIMELINE_CONTAINER)
        if start == -1:
            raise StructureError(f"timeline container {TIMELINE_CONTAINER!r} not found")
        return start + len(TIMELINE_CONTAINER)

    def find_section(self, document_text: str, date_key: str) -> int | None:
        """Offset of the first day section for ``date_key``, if any."""
        start = self.container_end(document_text)
        position = document_text.find(DAY_SECTION_OPEN.format(date_key=date_key), start)
        return None if position == -1 else position

    def insert(
        self,
        document_text: str,
        date_key: str,
        display_date: str,
        entry_html: str,
    ) -> str:
        """Return ``document_text`` with ``entry_html`` spliced in for ``date_key``.

        Args:
            document_text: Whole current document.
            date_key: ``YYYY-MM-DD`` of the entry.
            display_date: Human label used if a new day section is created.
            entry_html: Rendered entry block (see ``Entry.html``).

        Returns:
            The new document text. The input string is never modified.

        Raises:
            StructureError: If the container marker is missing, or the
                matching day section has no recognisable header block.
        """
        timeline_start = self.container_end(document_text)

        section_start = self.find_section(document_text, date_key)
        if section_start is not None:
            header = _header_re(date_key).match(document_text, section_start)
            if header is None:
                raise StructureError(
                    f"day section {date_key} has no date header; fix the document by hand"
                )
            logger.debug("Appending to existing day section %s at %d", date_key, header.end())
            return _splice(document_text, header.end(), BLOCK_SEPARATOR + entry_html)

        section = DAY_SECTION_TEMPLATE.format(
            date_key=date_key,
            display_date=display_date,
            body=BLOCK_SEPARATOR + entry_html,
        )
        first_section = document_text.find(DAY_SECTION_PREFIX, timeline_start)
        position = timeline_start if first_section == -1 else first_section
        logger.debug("Creating day section %s at %d", date_key, position)
        return _splice(document_text, position, BLOCK_SEPARATOR + section)

    def has_section(self, document_text: str, date_key: str) -> bool:
        return self.find_section(document_text, date_key) is not None


def scan_sections(document_text: str) -> list[DaySectionSummary]:
    """List day sections and their entry ids in document order.

    A lightweight scan for reporting; it does not validate nesting.
    Entries are attributed to the nearest preceding section marker.
    """
    sections: list[DaySectionSummary] = []
    markers = list(_SECTION_RE.finditer(document_text))
    for index, marker in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(document_text)
        body = document_text[marker.end() : end]
        sections.append(
            DaySectionSummary(
                date_key=marker.group(1),
                entry_ids=_ENTRY_ID_RE.findall(body),
            )
        )
    return sections
