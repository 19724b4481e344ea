"""Skip conditions: patterns that veto extraction for a message or a single rule."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ledgerscan.core.patterns import PatternError, compile_literal, normalize_patterns

logger = logging.getLogger(__name__)


def skip_pattern_matches(text: str, pattern: str) -> bool:
    """Test one skip pattern against message text.

    Plain patterns are case-insensitive substrings. Patterns written as
    ``/body/flags`` are also tried as a regex with those flags (``i`` when none
    are given). Raises PatternError for a malformed regex literal.
    """
    if not pattern or not pattern.strip():
        return False

    if pattern.lower() in text.lower():
        return True

    regex = compile_literal(pattern)
    if regex is None:
        return False
    return regex.search(text) is not None


def find_skip_match(
    text: str,
    patterns: Iterable[str],
    errors: Optional[List[str]] = None,
) -> Optional[str]:
    """Return the first pattern that vetoes ``text``, or None.

    Malformed patterns never match; their messages are appended to ``errors``
    when a list is given.
    """
    for pattern in patterns:
        try:
            if skip_pattern_matches(text, pattern):
                return pattern
        except PatternError as exc:
            logger.warning("Ignoring skip condition: %s", exc)
            if errors is not None:
                errors.append(str(exc))
    return None


def should_skip(message_text: str, candidate_skip_patterns: Iterable[str]) -> bool:
    """Message-level veto: True when any candidate pattern matches."""
    matched = find_skip_match(message_text, candidate_skip_patterns)
    if matched is not None:
        logger.debug("Message skipped due to skip condition %r", matched)
        return True
    return False


def collect_skip_patterns(rules: Iterable) -> List[str]:
    """Skip patterns of every enabled rule, de-duplicated, in rule order."""
    seen: set[str] = set()
    patterns: List[str] = []
    for rule in rules:
        if not rule.enabled:
            continue
        for pattern in normalize_patterns(rule.skip_condition):
            if pattern not in seen:
                seen.add(pattern)
                patterns.append(pattern)
    return patterns
