"""API routes for managing merchant notes."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.database import get_db
from ledgerscan.domain.merchant_notes.models import MerchantNote
from ledgerscan.domain.merchant_notes.repository import MerchantNoteRepository
from ledgerscan.domain.merchant_notes.schemas import (
    MerchantNoteCreate,
    MerchantNoteOut,
    MerchantNoteUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_note(note_id: int, repo: MerchantNoteRepository) -> MerchantNote:
    note = await repo.get(note_id)
    if not note:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Merchant note not found")
    return note


async def _ensure_name_free(repo: MerchantNoteRepository, merchant_name: str, note_id: int | None = None) -> None:
    existing = await repo.get_by_name(merchant_name)
    if existing is not None and existing.id != note_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A note for this merchant already exists",
        )


@router.get("", response_model=list[MerchantNoteOut])
async def list_merchant_notes(db: AsyncSession = Depends(get_db)) -> list[MerchantNote]:
    """Return every merchant note, ordered by merchant name."""
    return await MerchantNoteRepository(db).get_all()


@router.post("", response_model=MerchantNoteOut, status_code=status.HTTP_201_CREATED)
async def create_merchant_note(
    payload: MerchantNoteCreate,
    db: AsyncSession = Depends(get_db),
) -> MerchantNote:
    repo = MerchantNoteRepository(db)
    await _ensure_name_free(repo, payload.merchant_name)
    return await repo.add(MerchantNote(**payload.model_dump()))


@router.put("/{note_id}", response_model=MerchantNoteOut)
async def update_merchant_note(
    note_id: int,
    payload: MerchantNoteUpdate,
    db: AsyncSession = Depends(get_db),
) -> MerchantNote:
    repo = MerchantNoteRepository(db)
    note = await _get_note(note_id, repo)

    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        return note

    if "merchant_name" in update_data:
        await _ensure_name_free(repo, update_data["merchant_name"], note_id)
    for field, value in update_data.items():
        setattr(note, field, value)
    return await repo.update(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_merchant_note(note_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    if not await MerchantNoteRepository(db).delete(note_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Merchant note not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
