"""Claude access for ``rant --format``.

The Anthropic API is used when ANTHROPIC_API_KEY is set; otherwise (or with
RANT_USE_CLI=1) the prompt is piped through the ``claude -p`` CLI.
"""

from __future__ import annotations

import logging
import os
import subprocess

import anthropic

logger = logging.getLogger(__name__)

MODEL_ALIASES: dict[str, str] = {
    "sonnet": "claude-sonnet-4-5",
    "haiku": "claude-haiku-4-5",
    "opus": "claude-opus-4-1",
}
DEFAULT_MODEL = MODEL_ALIASES["sonnet"]
MAX_TOKENS = 8192


class LLMError(Exception):
    """Claude could not produce a usable reply."""


def _resolve_model(model: str | None) -> str:
    return MODEL_ALIASES.get(model, model) if model else DEFAULT_MODEL


def _ask_api(system_prompt: str, user_prompt: str, model: str | None, timeout: int) -> str:
    client = anthropic.Anthropic(api_key=os.environ["ANTHROPIC_API_KEY"].strip(), timeout=timeout)
    request: dict[str, object] = {
        "model": _resolve_model(model),
        "max_tokens": MAX_TOKENS,
        "messages": [{"role": "user", "content": user_prompt}],
    }
    if system_prompt.strip():
        request["system"] = system_prompt

    logger.debug("Anthropic request model=%s", request["model"])
    try:
        response = client.messages.create(**request)  # type: ignore[arg-type]
    except anthropic.AnthropicError as exc:
        raise LLMError(f"Anthropic API failed: {exc}") from exc
    return "".join(block.text for block in response.content if block.type == "text")


def _ask_cli(system_prompt: str, user_prompt: str, model: str | None, timeout: int) -> str:
    command = ["claude", "-p"] + (["--model", model] if model else [])
    prompt = "\n\n".join(part for part in (system_prompt, user_prompt) if part)
    # A nested CLAUDECODE marker makes the CLI refuse to start.
    env = {key: value for key, value in os.environ.items() if key != "CLAUDECODE"}

    logger.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            input=prompt,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except FileNotFoundError as exc:
        raise LLMError("Claude CLI not found, is 'claude' on the PATH?") from exc
    except subprocess.TimeoutExpired as exc:
        raise LLMError(f"Claude CLI timed out after {timeout}s") from exc

    if completed.returncode != 0:
        raise LLMError(f"Claude CLI failed (exit {completed.returncode}): {completed.stderr[:500]}")
    return completed.stdout


def call_claude(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str | None = None,
    timeout: int = 120,
    label: str = "format",
) -> str:
    """Send one prompt to Claude and return the stripped reply.

    Args:
        system_prompt: Instructions; may be empty.
        user_prompt: The text to work on.
        model: ``sonnet``, ``haiku``, ``opus`` or a full model id.
        timeout: Seconds before giving up.
        label: Names the call in log and error messages.

    Raises:
        LLMError: If the backend fails or replies with nothing.
    """
    use_api = bool(os.environ.get("ANTHROPIC_API_KEY", "").strip()) and (
        os.environ.get("RANT_USE_CLI", "").strip() != "1"
    )
    ask = _ask_api if use_api else _ask_cli
    logger.debug("Calling Claude via %s (%s)", "API" if use_api else "CLI", label)

    reply = ask(system_prompt, user_prompt, model, timeout).strip()
    if not reply:
        raise LLMError(f"Claude returned an empty response ({label})")
    return reply
