"""Helpers for the user-supplied text patterns stored on rules.

Rules come from a settings screen and from older exports where any pattern field
may be a single string, a list, or missing entirely. Everything is normalized to
a list of non-blank strings here so the matcher never has to care.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Optional

# JavaScript regex flags seen in stored `/body/flags` literals.
_JS_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
    "y": 0,
}


class PatternError(ValueError):
    """A stored pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


def normalize_patterns(value: Any) -> list[str]:
    """Accept a string, list-like or None and return the non-blank patterns."""
    if value is None:
        return []

    if isinstance(value, str):
        parts = [value]
    elif isinstance(value, (list, tuple, set)):
        parts = [part for part in value if part is not None]
    else:
        return []

    return [str(part) for part in parts if str(part).strip()]


def normalize_extractions(value: Any) -> list[dict]:
    """Normalize merchant anchor pairs to ``{start_text, end_text, start_index}`` dicts.

    Accepts camelCase keys as written by older rule exports. Entries with
    neither a start nor an end marker carry no information and are dropped.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []

    normalized: list[dict] = []
    for item in value:
        if hasattr(item, "model_dump"):
            item = item.model_dump()
        if not isinstance(item, dict):
            continue
        start_text = item.get("start_text", item.get("startText")) or ""
        end_text = item.get("end_text", item.get("endText")) or ""
        start_index = item.get("start_index", item.get("startIndex")) or 1
        if not start_text and not end_text:
            continue
        try:
            start_index = max(int(start_index), 1)
        except (TypeError, ValueError):
            start_index = 1
        normalized.append(
            {"start_text": str(start_text), "end_text": str(end_text), "start_index": start_index}
        )
    return normalized


def split_regex_literal(pattern: str) -> Optional[tuple[str, str]]:
    """Return ``(body, flags)`` when the pattern is written as ``/body/flags``."""
    if not pattern.startswith("/"):
        return None
    closing = pattern.rfind("/")
    if closing <= 1:
        return None
    return pattern[1:closing], pattern[closing + 1 :]


def _flags_from_js(flags: str, pattern: str) -> int:
    result = 0
    for flag in flags or "i":
        if flag not in _JS_FLAGS:
            raise PatternError(pattern, f"unsupported flag '{flag}'")
        result |= _JS_FLAGS[flag]
    return result


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str, flags: int = re.IGNORECASE) -> re.Pattern:
    """Compile a stored pattern, raising PatternError instead of re.error."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise PatternError(pattern, str(exc)) from exc


def compile_literal(pattern: str) -> Optional[re.Pattern]:
    """Compile a ``/body/flags`` literal; None when the pattern is not one."""
    parts = split_regex_literal(pattern)
    if parts is None:
        return None
    body, flags = parts
    return compile_pattern(body, _flags_from_js(flags, pattern))


def first_group(match: Optional[re.Match]) -> Optional[str]:
    """Group 1 of a match when the pattern has one and it captured something."""
    if match is None or match.re.groups < 1:
        return None
    value = match.group(1)
    return value or None
