"""Heuristic duplicate detection for freshly built transactions."""
from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ledgerscan.core.config import settings
from ledgerscan.domain.scanning.extractor import AMOUNT_QUANTUM
from ledgerscan.domain.scanning.schemas import to_naive_utc


def _cents(value) -> Decimal:
    return Decimal(str(value)).quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def _same_amount(left, right) -> bool:
    if left is None or right is None:
        return False
    return _cents(left) == _cents(right)


def _within(left: Optional[datetime], right: Optional[datetime], window_seconds: int) -> bool:
    if left is None or right is None:
        return False
    delta = to_naive_utc(left) - to_naive_utc(right)
    return abs(delta.total_seconds()) <= window_seconds


def is_duplicate(candidate, existing: Iterable, window_seconds: Optional[int] = None) -> bool:
    """True when ``candidate`` already exists among ``existing``.

    A candidate with an ``external_id`` is compared by id only. Without one, a
    duplicate has the same merchant (case-insensitive), the same amount in
    cents and a timestamp within ``window_seconds`` of the candidate's.
    """
    if window_seconds is None:
        window_seconds = settings.DUPLICATE_WINDOW_SECONDS

    if candidate.external_id:
        return any(item.external_id == candidate.external_id for item in existing)

    merchant = (candidate.merchant_name or "").lower()
    for item in existing:
        if (item.merchant_name or "").lower() != merchant:
            continue
        if not _same_amount(item.amount, candidate.amount):
            continue
        if _within(item.transaction_date, candidate.transaction_date, window_seconds):
            return True
    return False
