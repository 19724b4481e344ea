"""API route that scans a batch of raw messages."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.config import settings
from ledgerscan.core.database import StoreError, get_db
from ledgerscan.domain.merchant_notes.repository import MerchantNoteRepository
from ledgerscan.domain.rules.repository import RuleRepository
from ledgerscan.domain.scanning.schemas import ScanRequest, ScanResponse
from ledgerscan.domain.scanning.services import ScanOrchestrator
from ledgerscan.domain.transactions.repository import TransactionRepository
from ledgerscan.domain.transactions.schemas import TransactionOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/scan", response_model=ScanResponse)
async def scan_messages(payload: ScanRequest, db: AsyncSession = Depends(get_db)) -> ScanResponse:
    """Extract transactions from the posted messages and store the new ones."""
    if len(payload.messages) > settings.SCAN_MAX_MESSAGES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"At most {settings.SCAN_MAX_MESSAGES} messages per scan",
        )

    global_skip_sources = None
    if payload.global_skip is not None:
        global_skip_sources = ["sms", "email"] if payload.global_skip else []

    orchestrator = ScanOrchestrator(
        RuleRepository(db),
        TransactionRepository(db),
        duplicate_window_seconds=payload.duplicate_window_seconds,
        global_skip_sources=global_skip_sources,
        merchant_note_store=MerchantNoteRepository(db),
    )
    try:
        result = await orchestrator.scan(payload.messages)
    except StoreError as exc:
        logger.error("Scan aborted: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage unavailable, scan aborted",
        ) from None

    return ScanResponse(
        transactions=[TransactionOut.model_validate(t) for t in result.transactions],
        cancelled=result.cancelled,
        **result.outcome.summary(),
    )
