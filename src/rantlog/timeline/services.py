"""Document I/O and the read-format-plan-write sequence.

Contains everything in the timeline package that touches the disk.
Imports models from ``rantlog.timeline.models``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from rantlog.config import SiteConfig
from rantlog.errors import DocumentIOError
from rantlog.timeline.formatter import EntryFormatter
from rantlog.timeline.models import InsertResult
from rantlog.timeline.planner import InsertionPlanner

logger = logging.getLogger(__name__)


def read_document(path: Path) -> str:
    """Read the whole timeline document.

    Line endings are returned as stored (no newline translation), so a
    write of the returned text reproduces the file byte for byte.

    Raises:
        DocumentIOError: If the file is missing or unreadable.
    """
    if not path.exists():
        raise DocumentIOError(f"timeline document not found at {path}", operation="read")
    try:
        with open(path, encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentIOError(f"could not read {path}: {exc}", operation="read") from exc


def write_document(path: Path, text: str) -> None:
    """Replace the document with ``text``.

    Writes to a sibling temp file first and renames it over the target, so
    a failed write leaves the previous content in place.

    Raises:
        DocumentIOError: If the file cannot be written.
    """
    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise DocumentIOError(f"could not write {path}: {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def append_entry(
    site: SiteConfig,
    raw_text: str,
    now: datetime,
    *,
    formatter: EntryFormatter | None = None,
    planner: InsertionPlanner | None = None,
) -> InsertResult:
    """Add one entry to the site's timeline document on disk.

    Args:
        site: Resolved site configuration.
        raw_text: Entry text as typed (or AI-formatted) by the user.
        now: The single clock reading for this entry.
        formatter: Entry formatter (default ``EntryFormatter()``).
        planner: Insertion planner (default ``InsertionPlanner()``).

    Returns:
        InsertResult describing the written entry.

    Raises:
        DocumentIOError: If the document cannot be read or written.
        StructureError: If the document lacks the expected anchors. The
            file is not touched in that case.
    """
    formatter = formatter or EntryFormatter()
    planner = planner or InsertionPlanner()

    path = site.document_path
    document = read_document(path)
    entry = formatter.format(raw_text, now)
    new_section = not planner.has_section(document, entry.date_key)

    updated = planner.insert(document, entry.date_key, entry.display_date, entry.html)
    write_document(path, updated)

    logger.info(
        "Added %s to %s (%s day section)",
        entry.id,
        path,
        "new" if new_section else "existing",
    )
    return InsertResult(entry=entry, document_path=path, new_section=new_section)
