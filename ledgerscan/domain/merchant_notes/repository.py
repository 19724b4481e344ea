"""Async persistence for merchant notes."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.database import StoreError
from ledgerscan.domain.merchant_notes.models import MerchantNote

logger = logging.getLogger(__name__)


class MerchantNoteRepository:
    """CRUD access to the ``merchant_notes`` table for one database session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Merchant note commit failed")
            raise StoreError("Could not save merchant note") from exc

    async def get_all(self) -> List[MerchantNote]:
        try:
            result = await self.db.execute(select(MerchantNote).order_by(MerchantNote.merchant_name))
        except SQLAlchemyError as exc:
            raise StoreError("Could not load merchant notes") from exc
        return list(result.scalars().all())

    async def get(self, note_id: int) -> Optional[MerchantNote]:
        try:
            result = await self.db.execute(select(MerchantNote).where(MerchantNote.id == note_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load merchant note {note_id}") from exc
        return result.scalar_one_or_none()

    async def get_by_name(self, merchant_name: str) -> Optional[MerchantNote]:
        """Case-insensitive lookup by merchant name."""
        name = (merchant_name or "").strip().lower()
        try:
            result = await self.db.execute(
                select(MerchantNote).where(func.lower(MerchantNote.merchant_name) == name)
            )
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load merchant note for {merchant_name!r}") from exc
        return result.scalars().first()

    async def add(self, note: MerchantNote) -> MerchantNote:
        self.db.add(note)
        await self._commit()
        await self.db.refresh(note)
        logger.info("Created merchant note %s (%s)", note.id, note.merchant_name)
        return note

    async def update(self, note: MerchantNote) -> MerchantNote:
        note.updated_at = datetime.utcnow()
        merged = await self.db.merge(note)
        await self._commit()
        return merged

    async def delete(self, note_id: int) -> bool:
        note = await self.get(note_id)
        if note is None:
            return False
        await self.db.delete(note)
        await self._commit()
        logger.info("Deleted merchant note %s", note_id)
        return True
