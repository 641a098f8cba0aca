"""
Recovery of structured data from free-form model replies.

Each strategy is a pure function ``text -> dict | None``. ``run_chain`` tries
them in order and returns the first hit; callers put a total fallback last.
"""
import json
import logging
import re
from typing import Any, Callable, Optional, Sequence

from blogwriter.errors import OutputShapeError

logger = logging.getLogger(__name__)

Extractor = Callable[[str], Optional[dict[str, Any]]]

FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?([\s\S]*?)\n?[ \t]*```", re.IGNORECASE)

# A JSON string body: anything but an unescaped quote
_STRING_BODY = r'((?:[^"\\]|\\.)*)'
TITLE_RE = re.compile(r'"title"\s*:\s*"' + _STRING_BODY + '"', re.DOTALL)
CONTENT_RE = re.compile(r'"content"\s*:\s*"' + _STRING_BODY + '"', re.DOTALL)

_UNESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\", "/": "/", "r": "\r"}


def parse_object(text: str) -> dict[str, Any]:
    """json.loads that only accepts an object; raises OutputShapeError."""
    try:
        value = json.loads(text.strip(), strict=False)
    except (json.JSONDecodeError, ValueError) as exc:
        raise OutputShapeError(f"not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise OutputShapeError(f"expected a JSON object, got {type(value).__name__}")
    return value


def fenced_block(text: str) -> Optional[str]:
    """Interior of the first ``` fenced block, optionally tagged json."""
    match = FENCE_RE.search(text)
    return match.group(1) if match else None


# ── Strategies ────────────────────────────────────────────────────────────────

def from_fence(text: str) -> Optional[dict[str, Any]]:
    inner = fenced_block(text)
    if inner is None:
        return None
    try:
        return parse_object(inner)
    except OutputShapeError:
        return None


def from_raw(text: str) -> Optional[dict[str, Any]]:
    try:
        return parse_object(text)
    except OutputShapeError:
        return None


def from_fence_or_raw(text: str) -> Optional[dict[str, Any]]:
    """Parse the fenced interior if there is a fence, the raw text otherwise."""
    inner = fenced_block(text)
    try:
        return parse_object(inner if inner is not None else text)
    except OutputShapeError:
        return None


def from_brace_span(text: str) -> Optional[dict[str, Any]]:
    """Parse the substring from the first ``{`` to the last ``}``."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        return parse_object(text[start:end + 1])
    except OutputShapeError:
        return None


def unescape_json_string(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _UNESCAPES.get(m.group(1), m.group(0)), value, flags=re.DOTALL)


def from_quoted_fields(text: str) -> Optional[dict[str, Any]]:
    """Pull ``"title": "..."`` and ``"content": "..."`` out independently."""
    result = {}
    title = TITLE_RE.search(text)
    if title:
        result["title"] = unescape_json_string(title.group(1))
    content = CONTENT_RE.search(text)
    if content:
        result["content"] = unescape_json_string(content.group(1))
    return result or None


# ── Chain ─────────────────────────────────────────────────────────────────────

def run_chain(
    text: str,
    strategies: Sequence[Extractor],
    accept: Callable[[dict[str, Any]], bool] = lambda candidate: True,
) -> tuple[Optional[dict[str, Any]], Optional[str]]:
    """Return ``(candidate, strategy_name)`` for the first accepted result."""
    for strategy in strategies:
        candidate = strategy(text)
        if candidate is not None and accept(candidate):
            logger.debug("Model reply recovered by %s", strategy.__name__)
            return candidate, strategy.__name__
    return None, None
