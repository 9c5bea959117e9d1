"""Helpers for turning structured model output into Python values."""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import ResponseParseError


_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fences(content: str) -> str:
    """Remove a Markdown code fence wrapping the whole payload, if present."""
    text = content.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_json_array(content: str) -> list[Any]:
    """Parse a JSON array, tolerating a surrounding code fence or stray prose.

    Raises:
        ResponseParseError: If no JSON array can be recovered.
    """
    if not content or not content.strip():
        raise ResponseParseError("Empty model response", content or "")
    cleaned = strip_code_fences(content)
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError:
        value = _parse_embedded_array(cleaned)
    if not isinstance(value, list):
        raise ResponseParseError("Expected a JSON array", cleaned[:200])
    return value


def _parse_embedded_array(content: str) -> Any:
    start = content.find("[")
    end = content.rfind("]")
    if start == -1 or end <= start:
        raise ResponseParseError("No JSON array found", content[:200])
    try:
        return json.loads(content[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Malformed JSON array: {exc.msg}", content[:200]) from exc
