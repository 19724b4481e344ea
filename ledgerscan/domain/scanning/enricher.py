"""Fill category and notes of auto-extracted transactions.

A merchant note curated by the user wins; merchant history fills whatever the
note leaves empty.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from ledgerscan.core.config import settings

logger = logging.getLogger(__name__)


def has_auto_note(notes: Optional[str]) -> bool:
    return bool(notes) and settings.AUTO_NOTE_MARKER in notes


def needs_enrichment(transaction) -> bool:
    return transaction.category == settings.DEFAULT_CATEGORY or has_auto_note(transaction.notes)


def index_merchant_notes(merchant_notes: Iterable) -> Dict[str, object]:
    """Map lowercased merchant name to its note."""
    return {note.lookup_key: note for note in merchant_notes if note.merchant_name}


def find_merchant_note(transaction, merchant_notes: Optional[Dict[str, object]]):
    if not merchant_notes:
        return None
    return merchant_notes.get((transaction.merchant_name or "").strip().lower())


def find_source(transaction, history: Iterable):
    """Most recent user-curated transaction with the same merchant, or None."""
    merchant = (transaction.merchant_name or "").lower()
    best = None
    for item in history:
        if item is transaction or (item.id is not None and item.id == transaction.id):
            continue
        if (item.merchant_name or "").lower() != merchant:
            continue
        if has_auto_note(item.notes):
            continue
        if best is None or (item.transaction_date or datetime.min) > (best.transaction_date or datetime.min):
            best = item
    return best


def _first_value(field: str, *sources) -> Optional[str]:
    for source in sources:
        value = getattr(source, field, None) if source is not None else None
        if value:
            return value
    return None


def enrich(
    transaction,
    history: Iterable,
    merchant_notes: Optional[Dict[str, object]] = None,
) -> Tuple[object, bool]:
    """Copy category and notes onto ``transaction`` in place.

    ``merchant_notes`` is the mapping built by ``index_merchant_notes``.
    """
    if not needs_enrichment(transaction):
        return transaction, False

    note = find_merchant_note(transaction, merchant_notes)
    source = find_source(transaction, history)
    if note is None and source is None:
        return transaction, False

    changed = False
    if transaction.category == settings.DEFAULT_CATEGORY:
        category = _first_value("category", note, source)
        if category and category != transaction.category:
            transaction.category = category
            changed = True

    if not transaction.notes or has_auto_note(transaction.notes):
        notes = _first_value("notes", note, source)
        if notes and notes != transaction.notes:
            transaction.notes = notes
            changed = True

    if changed:
        logger.debug(
            "Enriched %r (merchant note: %s, source transaction: %s)",
            transaction.merchant_name,
            note.id if note is not None else None,
            source.id if source is not None else None,
        )
    return transaction, changed


async def load_merchant_notes(merchant_note_store) -> Dict[str, object]:
    if merchant_note_store is None:
        return {}
    return index_merchant_notes(await merchant_note_store.get_all())


async def backfill(transaction_store, merchant_note_store=None) -> int:
    """Re-enrich every stored transaction; returns how many were updated."""
    merchant_notes = await load_merchant_notes(merchant_note_store)
    transactions = await transaction_store.get_all()
    updated = 0
    for transaction in transactions:
        _, changed = enrich(transaction, transactions, merchant_notes)
        if changed:
            await transaction_store.update(transaction)
            updated += 1
    logger.info("Enrichment backfill updated %s of %s transactions", updated, len(transactions))
    return updated
