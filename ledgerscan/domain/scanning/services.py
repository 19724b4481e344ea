"""Batch scanning: turn a list of raw messages into stored transactions."""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Union

from ledgerscan.core.config import settings
from ledgerscan.core.database import StoreError
from ledgerscan.core.logging_config import SCAN_LOGGER
from ledgerscan.domain.scanning.builder import build_transaction
from ledgerscan.domain.scanning.duplicates import is_duplicate
from ledgerscan.domain.scanning.enricher import enrich, load_merchant_notes
from ledgerscan.domain.scanning.matcher import RuleMatcher
from ledgerscan.domain.scanning.schemas import RawMessage, ScanOutcome
from ledgerscan.domain.scanning.skip_filter import collect_skip_patterns, should_skip
from ledgerscan.domain.transactions.models import Transaction

logger = logging.getLogger(__name__)
scan_logger = logging.getLogger(SCAN_LOGGER)

CompletionCallback = Callable[[ScanOutcome], Union[None, Awaitable[None]]]


@dataclass
class ScanResult:
    transactions: List[Transaction] = field(default_factory=list)
    outcome: ScanOutcome = field(default_factory=ScanOutcome)
    cancelled: bool = False

    @property
    def success_count(self) -> int:
        return self.outcome.success_count

    @property
    def duplicate_count(self) -> int:
        return self.outcome.duplicate_count

    @property
    def skipped_count(self) -> int:
        return self.outcome.skipped_count

    @property
    def failed_count(self) -> int:
        return self.outcome.failed_count


class ScanOrchestrator:
    """Runs messages through skip filtering, matching, deduplication and enrichment.

    Messages are handled one at a time. A failure on one message is counted and
    the scan moves on; a ``StoreError`` ends the scan and propagates, leaving
    transactions saved so far in place.
    """

    def __init__(
        self,
        rule_store,
        transaction_store,
        *,
        duplicate_window_seconds: Optional[int] = None,
        global_skip_sources: Optional[Iterable[str]] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        merchant_note_store=None,
    ) -> None:
        self.rule_store = rule_store
        self.transaction_store = transaction_store
        self.merchant_note_store = merchant_note_store
        self.matcher = RuleMatcher(rule_store)
        self.duplicate_window_seconds = (
            settings.DUPLICATE_WINDOW_SECONDS if duplicate_window_seconds is None else duplicate_window_seconds
        )
        if global_skip_sources is None:
            global_skip_sources = settings.global_skip_sources
        self.global_skip_sources = {str(source).lower() for source in global_skip_sources}
        self.on_complete = on_complete
        self.cancel_event = cancel_event

    def _globally_skipped(self, message: RawMessage, skip_patterns: List[str]) -> bool:
        if message.source.value not in self.global_skip_sources:
            return False
        return should_skip(message.text, skip_patterns)

    async def _process(
        self,
        message: RawMessage,
        rules: List,
        skip_patterns: List[str],
        known: List[Transaction],
        merchant_notes: dict,
        result: ScanResult,
    ) -> None:
        outcome = result.outcome
        if self._globally_skipped(message, skip_patterns):
            outcome.skipped_count += 1
            return

        match = await self.matcher.match(message, rules)
        if match is None:
            logger.debug("No rule matched message %s from %r", message.id, message.sender)
            outcome.skipped_count += 1
            return

        candidate = build_transaction(message, match)
        if is_duplicate(candidate, known, self.duplicate_window_seconds):
            logger.debug("Duplicate %r %s ignored", candidate.merchant_name, candidate.amount)
            outcome.duplicate_count += 1
            return

        enrich(candidate, known, merchant_notes)
        saved = await self.transaction_store.add(candidate)
        known.append(saved)
        result.transactions.append(saved)
        outcome.success_count += 1

    async def _notify(self, outcome: ScanOutcome) -> None:
        if self.on_complete is None:
            return
        returned = self.on_complete(outcome)
        if inspect.isawaitable(returned):
            await returned

    async def scan(self, raw_messages: Iterable[RawMessage], rules: Optional[List] = None) -> ScanResult:
        if rules is None:
            rules = await self.rule_store.get_all()
        rules = list(rules)
        skip_patterns = collect_skip_patterns(rules)
        known = list(await self.transaction_store.get_all())
        merchant_notes = await load_merchant_notes(self.merchant_note_store)

        result = ScanResult()
        for message in raw_messages:
            if self.cancel_event is not None and self.cancel_event.is_set():
                result.cancelled = True
                break
            try:
                await self._process(message, rules, skip_patterns, known, merchant_notes, result)
            except StoreError:
                raise
            except Exception:
                logger.exception("Failed to process message %s from %r", message.id, message.sender)
                result.outcome.failed_count += 1

        scan_logger.info(
            "Scan %s: %s",
            "cancelled" if result.cancelled else "finished",
            result.outcome.summary(),
        )
        await self._notify(result.outcome)
        return result
