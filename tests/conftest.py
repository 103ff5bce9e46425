"""Shared fixtures: sample timeline documents, a site on disk, a fake VCS."""

from __future__ import annotations

from pathlib import Path

import pytest

from rantlog.config import SiteConfig
from rantlog.errors import SyncError

EMPTY_TIMELINE = """\
---
title: "Rants"
---

<div class="rants-timeline">
</div>
"""

ONE_DAY_TIMELINE = """\
---
title: "Rants"
format: html
---

<!-- hand-written intro, keep   trailing spaces -->
Some intro text.

<div class="rants-timeline">

<!-- 2024-01-15 -->
<div class="rant-day" data-date="2024-01-15">
<div class="date-header">
<span class="date">January 15, 2024</span>
</div>

<div class="rant-entry" id="entry-2024-01-15-1705330000000">
<div class="time-stamp">
9:46 AM
<a href="#entry-2024-01-15-1705330000000" class="rant-anchor" title="Link to this rant">🔗</a>
</div>
<div class="rant-content">
Coffee machine is broken again.
</div>
</div>

</div>

</div>

<!-- footer:	tabs and spaces stay put -->
"""


class FakeVcs:
    """Records every repository call; optionally fails one operation."""

    def __init__(self, fail_on: str | None = None, status_output: str = " M rants.qmd\n") -> None:
        self.fail_on = fail_on
        self.status_output = status_output
        self.calls: list[tuple[str, ...]] = []
        self.committed_paths: list[str | None] = []

    def _record(self, op: str, *args: str) -> None:
        self.calls.append((op, *args))
        if op == self.fail_on:
            raise SyncError(op, f"simulated {op} failure")

    def pull(self, branch: str) -> None:
        self._record("pull", branch)

    def status(self, path: str) -> str:
        self._record("status", path)
        return self.status_output

    def add(self, path: str) -> None:
        self._record("add", path)

    def commit(self, message: str, path: str | None = None) -> None:
        self._record("commit", message)
        self.committed_paths.append(path)

    def push(self, branch: str) -> None:
        self._record("push", branch)

    @property
    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_vcs_class() -> type[FakeVcs]:
    return FakeVcs


@pytest.fixture
def empty_timeline() -> str:
    return EMPTY_TIMELINE


@pytest.fixture
def one_day_timeline() -> str:
    return ONE_DAY_TIMELINE


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A site checkout with a one-day timeline document."""
    site_path = tmp_path / "mysite"
    site_path.mkdir()
    (site_path / "rants.qmd").write_text(ONE_DAY_TIMELINE, encoding="utf-8")
    return site_path


@pytest.fixture
def site(site_dir: Path) -> SiteConfig:
    return SiteConfig(path=site_dir, file="rants.qmd", branch="main")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user environment from leaking into config and LLM tests."""
    for key in (
        "RANT_SITE",
        "RANT_MODEL",
        "RANT_BASE_DIR",
        "RANT_USE_CLI",
        "DROPLET_ENV",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
