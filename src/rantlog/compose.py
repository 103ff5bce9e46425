"""Getting the rant text: stdin, an interactive editor, AI cleanup.

These are thin wrappers around external processes. The CLI wires them
together; the timeline and sync packages never call them.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import Protocol, TextIO

from rantlog.errors import RantError

logger = logging.getLogger(__name__)

EDITOR_HEADER = "# Type your rant below this line\n\n"
DEFAULT_TERMINAL_EDITOR = "nano"
GUI_EDITORS = [
    "code --wait",
    "subl --wait",
    "atom --wait",
    "open -W -a TextEdit",
    "gedit",
    "notepad",
]

FORMAT_PROMPT = """\
Please format and improve the following text for a blog rant/post.
Make it more readable by:
- Adding proper paragraph breaks where needed
- Converting lists into bullet points or numbered lists where appropriate
- Fixing any obvious grammar or spelling errors
- Improving sentence structure for clarity
- Adding emphasis (bold/italic) where it would help
- Ensuring proper capitalization and punctuation

Keep the original tone and meaning intact. Do not add conclusions, summaries, or additional content.
Only format and structure what's already there.

Please output ONLY the formatted text, nothing else."""


class ComposeError(RantError):
    """Raised when the editor cannot be launched or its output read."""


# ---------------------------------------------------------------------------
# Text sources
# ---------------------------------------------------------------------------


def read_stdin(stream: TextIO | None = None) -> str | None:
    """Return piped input (stripped), or None when attached to a terminal."""
    stream = stream or sys.stdin
    if stream is None or stream.isatty():
        return None
    return stream.read().strip()


def find_gui_editor() -> str | None:
    """First GUI editor whose executable is on the PATH."""
    for candidate in GUI_EDITORS:
        if shutil.which(candidate.split()[0]):
            return candidate
    return None


def choose_editor(gui: bool = False, command: str = "") -> str:
    """Pick the editor command line.

    An explicit ``command`` wins. In GUI mode the first available GUI editor
    is used, falling back to the terminal editor when none is installed.
    """
    if command:
        return command
    if gui:
        found = find_gui_editor()
        if found:
            return found
        logger.warning("No GUI editor found, falling back to terminal editor")
    return os.environ.get("EDITOR") or DEFAULT_TERMINAL_EDITOR


def strip_editor_header(content: str) -> str:
    """Drop the two instruction lines written before the editor opened."""
    return "\n".join(content.split("\n")[2:]).strip()


def open_editor(gui: bool = False, command: str = "") -> str:
    """Let the user compose the rant in an editor and return what they wrote.

    Raises:
        ComposeError: If the editor cannot be started or exits non-zero.
    """
    editor = choose_editor(gui=gui, command=command)
    path = Path(tempfile.gettempdir()) / f"rant-{int(time.time() * 1000)}.md"
    path.write_text(EDITOR_HEADER, encoding="utf-8")

    logger.info("Opening editor: %s", editor)
    try:
        subprocess.run([*shlex.split(editor), str(path)], check=True)
        return strip_editor_header(path.read_text(encoding="utf-8"))
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ComposeError(f"error opening editor {editor!r}: {exc}") from exc
    finally:
        path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Text transforms
# ---------------------------------------------------------------------------


class TextTransform(Protocol):
    """Anything that rewrites entry text before it is inserted."""

    def format(self, text: str) -> str: ...


class ClaudeTextFormatter:
    """Cleans up grammar and structure with Claude.

    Never fails the invocation: if the LLM call errors, the original text
    is returned and a warning is logged.
    """

    def __init__(self, model: str | None = None, timeout: int = 120) -> None:
        self._model = model
        self._timeout = timeout

    def format(self, text: str) -> str:
        from rantlog.llm import LLMError, call_claude

        user_prompt = f"Here's the text to format:\n\n{text}"
        try:
            return call_claude(
                FORMAT_PROMPT,
                user_prompt,
                model=self._model,
                timeout=self._timeout,
                label="format rant",
            )
        except LLMError as exc:
            logger.warning("AI formatting failed, using original text: %s", exc)
            return text
