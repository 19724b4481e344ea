"""Field extraction for a single rule: amount, merchant name and date."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Optional

from ledgerscan.core.config import settings
from ledgerscan.core.patterns import PatternError, compile_pattern, first_group

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
# Matches the scale of Transaction.amount.
AMOUNT_QUANTUM = Decimal("0.01")

DATE_FORMATS = [
    "%d-%m-%y",
    "%d-%m-%Y",
    "%d/%m/%y",
    "%d/%m/%Y",
    "%d-%b-%y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%d %b %y",
    "%d %B %Y",
    "%b %d, %Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
]


def _search(pattern: str, text: str, errors: Optional[List[str]]) -> Optional[re.Match]:
    try:
        return compile_pattern(pattern).search(text)
    except PatternError as exc:
        logger.warning("%s", exc)
        if errors is not None:
            errors.append(str(exc))
        return None


def parse_amount(raw: Optional[str], allow_zero: Optional[bool] = None) -> Optional[Decimal]:
    """Parse a captured amount into a non-negative Decimal.

    Thousands separators are dropped and the leading numeric prefix is used, so
    "1,250.00" and "250." both parse. Signs never survive: the direction of a
    transaction comes from its rule, not from the text. The result is rounded
    to cents so it compares equal to the stored value.
    """
    if raw is None:
        return None
    cleaned = raw.replace(",", "").strip()
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    try:
        amount = abs(Decimal(match.group(0)))
        if not amount.is_finite():
            return None
        amount = amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None

    if allow_zero is None:
        allow_zero = settings.ALLOW_ZERO_AMOUNTS
    if amount == 0 and not allow_zero:
        return None
    return amount


def extract_amount(
    text: str,
    patterns: Iterable[str],
    errors: Optional[List[str]] = None,
) -> Optional[Decimal]:
    """Try amount patterns in order; the first capture that parses wins."""
    for pattern in patterns:
        match = _search(pattern, text, errors)
        captured = first_group(match)
        if captured is None:
            continue
        amount = parse_amount(captured)
        if amount is not None:
            logger.debug("Amount %s extracted with pattern %r", amount, pattern)
            return amount
    return None


def extract_between(
    text: str,
    start_text: Optional[str] = None,
    end_text: Optional[str] = None,
    start_index: int = 1,
) -> str:
    """Text between the ``start_index``-th ``start_text`` and the next ``end_text``.

    Markers are matched case-insensitively. An empty or missing ``end_text``
    runs to the end of the message. Returns "" when the start marker does not
    occur often enough.
    """
    if not text:
        return ""
    lower_text = text.lower()
    start = 0
    end = len(text)

    if start_text:
        marker = start_text.lower()
        position = -1
        search_from = 0
        for _ in range(max(start_index, 1)):
            position = lower_text.find(marker, search_from)
            if position == -1:
                return ""
            search_from = position + len(marker)
        start = position + len(marker)

    if end_text:
        found = lower_text.find(end_text.lower(), start)
        if found != -1:
            end = found

    if start >= end:
        return ""
    return text[start:end].strip()


def extract_by_anchors(text: str, extractions: Iterable[dict]) -> str:
    """First non-empty result over the rule's anchor pairs."""
    for extraction in extractions:
        name = extract_between(
            text,
            extraction.get("start_text"),
            extraction.get("end_text"),
            extraction.get("start_index") or 1,
        )
        if name:
            return name
    return ""


def extract_by_regex(
    text: str,
    patterns: Iterable[str],
    errors: Optional[List[str]] = None,
) -> str:
    """Group 1 of the first merchant condition that matches."""
    for pattern in patterns:
        captured = first_group(_search(pattern, text, errors))
        if captured and captured.strip():
            return captured.strip()
    return ""


def clean_merchant_name(
    name: str,
    patterns: Iterable[str],
    errors: Optional[List[str]] = None,
) -> str:
    """Apply cleanup patterns to a merchant name; the first that captures wins."""
    for pattern in patterns:
        captured = first_group(_search(pattern, name, errors))
        if captured and captured.strip():
            logger.debug("Merchant %r cleaned to %r by %r", name, captured.strip(), pattern)
            return captured.strip()
    return name


def merchant_from_sender(sender: Optional[str]) -> Optional[str]:
    """Merchant name taken from an email From header.

    Uses the display name of ``"Name <addr>"`` when there is one, otherwise the
    first label of the mail domain, capitalized (``alerts@amazon.in`` gives
    "Amazon").
    """
    if not sender:
        return None
    display, _, _ = sender.partition("<")
    display = display.strip().strip('"').strip()
    if display and "<" in sender:
        return display

    _, at, domain = sender.partition("@")
    label = domain.strip(" >").split(".")[0] if at else ""
    if label:
        return label[0].upper() + label[1:]
    return None


def extract_merchant(
    text: str,
    rule,
    errors: Optional[List[str]] = None,
    sender: Optional[str] = None,
) -> str:
    """Merchant name for an accepted rule.

    Anchor pairs are tried first, then merchant conditions. When both come up
    empty the ``sender`` (passed for email only) is used, and finally the
    placeholder.
    """
    name = extract_by_anchors(text, rule.merchant_extractions or [])
    if not name:
        name = extract_by_regex(text, rule.merchant_condition or [], errors)
    if not name:
        from_sender = merchant_from_sender(sender)
        if from_sender:
            logger.debug("Merchant %r taken from sender %r", from_sender, sender)
            return from_sender
        return settings.UNKNOWN_MERCHANT
    return clean_merchant_name(name, rule.merchant_common_patterns or [], errors)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    raw = value.strip()
    if not raw:
        return None

    try:
        return datetime.fromisoformat(raw.replace("Z", ""))
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def extract_date(
    text: str,
    patterns: Iterable[str],
    errors: Optional[List[str]] = None,
) -> Optional[datetime]:
    """Date captured by the first date pattern whose group 1 parses."""
    for pattern in patterns:
        parsed = parse_date(first_group(_search(pattern, text, errors)))
        if parsed is not None:
            return parsed
    return None
