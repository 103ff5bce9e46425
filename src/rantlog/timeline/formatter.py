"""Entry formatting: ids, display timestamps and URL auto-linking."""

from __future__ import annotations

import re
from datetime import datetime

from rantlog.timeline.models import Entry

ENTRY_ID_PREFIX = "entry"

# Shared tail of every URL form: optional port, path, query and fragment.
_PCT = r"%[0-9A-Fa-f]{2}"
_PATH = r"(?:/(?:[\w._~!$&'()*+,;=:@]|" + _PCT + r")*)*"
_QUERY = r"(?:\?(?:[\w._~!$&'()*+,;=:@/?]|" + _PCT + r")*)?"
_FRAGMENT = r"(?:#(?:[\w._~!$&'()*+,;=:@/?]|" + _PCT + r")*)?"
_TAIL = r"(?::\d+)?" + _PATH + _QUERY + _FRAGMENT

_SCHEME_URL = r"https?://[-\w.]+" + _TAIL
_WWW_URL = r"www\.[-\w.]+" + _TAIL
_BARE_DOMAIN = r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}" + _TAIL

URL_RE = re.compile(f"{_SCHEME_URL}|{_WWW_URL}|{_BARE_DOMAIN}")
# Existing anchors (with their text) and any other tag are matched first and left alone.
_MARKUP = r"<[aA]\b[^>]*>.*?</[aA]\s*>|</?[a-zA-Z!][^>]*>"
_LINKABLE_RE = re.compile(f"(?P<markup>{_MARKUP})|{URL_RE.pattern}", re.DOTALL)
_TRAILING_PUNCTUATION_RE = re.compile(r"[.,;:!?]+$")

_LINK_TEMPLATE = '<a href="{href}" target="_blank" rel="noopener noreferrer">{label}</a>{trailing}'


def _link_match(match: re.Match[str]) -> str:
    if match.group("markup"):
        return match.group("markup")
    text = match.group(0)
    label = _TRAILING_PUNCTUATION_RE.sub("", text)
    trailing = text[len(label) :]

    href = label
    if not href.startswith(("http://", "https://", "ftp://")):
        href = "https://" + href

    return _LINK_TEMPLATE.format(href=href, label=label, trailing=trailing)


def autolink(text: str) -> str:
    """Wrap bare URLs, ``www.`` hosts and domain-like tokens in anchors.

    Trailing sentence punctuation is kept outside the link, so
    ``"see example.com."`` links only ``example.com``. Nothing else is
    escaped: markup already present in ``text`` passes through untouched,
    including attribute values and the text of existing ``<a>`` elements.
    """
    return _LINKABLE_RE.sub(_link_match, text)


def date_key(now: datetime) -> str:
    return now.strftime("%Y-%m-%d")


def display_date(now: datetime) -> str:
    """Long-form date, e.g. ``January 5, 2024``."""
    return f"{now.strftime('%B')} {now.day}, {now.year}"


def display_time(now: datetime) -> str:
    """12-hour clock without seconds, e.g. ``3:07 PM``."""
    hour = now.hour % 12 or 12
    period = "PM" if now.hour >= 12 else "AM"
    return f"{hour}:{now.minute:02d} {period}"


class EntryFormatter:
    """Builds the rendered form of one new entry.

    Pure: everything is derived from ``raw_text`` and the single ``now``
    reading handed in by the caller. Two entries formatted within the same
    millisecond get the same id; that risk is accepted.
    """

    def __init__(self, id_prefix: str = ENTRY_ID_PREFIX) -> None:
        self._id_prefix = id_prefix

    def entry_id(self, now: datetime) -> str:
        millis = int(now.timestamp() * 1000)
        return f"{self._id_prefix}-{date_key(now)}-{millis}"

    def format(self, raw_text: str, now: datetime) -> Entry:
        return Entry(
            id=self.entry_id(now),
            date_key=date_key(now),
            display_date=display_date(now),
            display_time=display_time(now),
            raw_text=raw_text,
            linked_text=autolink(raw_text),
            created_at=now,
        )
