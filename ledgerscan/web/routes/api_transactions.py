"""API routes for stored transactions."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.database import get_db
from ledgerscan.domain.merchant_notes.repository import MerchantNoteRepository
from ledgerscan.domain.scanning.enricher import backfill
from ledgerscan.domain.transactions.models import Transaction
from ledgerscan.domain.transactions.repository import TransactionRepository
from ledgerscan.domain.transactions.schemas import EnrichmentResponse, TransactionOut

router = APIRouter()


@router.get("", response_model=list[TransactionOut])
async def list_transactions(db: AsyncSession = Depends(get_db)) -> list[Transaction]:
    """Return stored transactions, newest first."""
    return await TransactionRepository(db).get_all()


@router.post("/enrich", response_model=EnrichmentResponse)
async def enrich_transactions(db: AsyncSession = Depends(get_db)) -> EnrichmentResponse:
    """Fill category and notes of auto-extracted transactions from merchant notes and history."""
    updated = await backfill(TransactionRepository(db), MerchantNoteRepository(db))
    return EnrichmentResponse(updated=updated)
