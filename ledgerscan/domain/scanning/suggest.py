"""Starter patterns for a new rule, derived from one sample message."""
from __future__ import annotations

import re
from typing import List

from ledgerscan.domain.scanning.schemas import PatternSuggestions

CURRENCY_AMOUNT_PATTERN = r"(?:Rs|INR|₹)\.?\s*([\d,.]+)"
GENERIC_AMOUNT_PATTERN = r"([\d,.]+)"

_CURRENCY_PROBE = re.compile(r"(?:\b(?:Rs|INR)|₹)\.?\s*\d[\d,.]*", re.IGNORECASE)
_KEYWORD_PROBE = re.compile(r"\b(at|to|in)\b", re.IGNORECASE)
_DATED_PROBE = re.compile(r"\bon \d{1,2}[-/][A-Za-z0-9]{1,9}", re.IGNORECASE)
_ON_PROBE = re.compile(r"\bon [\w\s]+", re.IGNORECASE)

MERCHANT_KEYWORDS = ("at", "to", "in")


def _dedupe(patterns: List[str]) -> List[str]:
    return list(dict.fromkeys(patterns))


def suggest_patterns(text: str) -> PatternSuggestions:
    amount: List[str] = []
    merchant: List[str] = []
    cleaning: List[str] = []

    if _CURRENCY_PROBE.search(text):
        amount.append(CURRENCY_AMOUNT_PATTERN)
    amount.append(GENERIC_AMOUNT_PATTERN)

    for keyword in MERCHANT_KEYWORDS:
        if re.search(rf"\b{keyword}\s+[A-Za-z0-9&.'-]", text, re.IGNORECASE):
            merchant.append(rf"\b{keyword}\s+([A-Za-z0-9 &.'-]+)")
            merchant.append(rf"\b{keyword}\s+([^.,\n]+?)(?:\s+on\b|\.|,|$)")
    if _KEYWORD_PROBE.search(text):
        merchant.append(r"\b(?:at|to|in)\s+(\w[\w&.'-]*)")

    if _DATED_PROBE.search(text):
        cleaning.append(r"^(.+?)\s+on\s+\d+")
    if _ON_PROBE.search(text):
        cleaning.append(r"^(.+?)\s+on\s+.+")

    return PatternSuggestions(
        amount_patterns=_dedupe(amount),
        merchant_patterns=_dedupe(merchant),
        merchant_cleaning_patterns=_dedupe(cleaning),
    )
