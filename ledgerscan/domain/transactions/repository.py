"""Async persistence for transactions."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.database import StoreError
from ledgerscan.domain.transactions.models import Transaction

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Read and write access to the ``transactions`` table for one session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Transaction store commit failed")
            raise StoreError("Could not save transaction") from exc

    async def get_all(self) -> List[Transaction]:
        try:
            result = await self.db.execute(
                select(Transaction).order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            )
        except SQLAlchemyError as exc:
            raise StoreError("Could not load transactions") from exc
        return list(result.scalars().all())

    async def add(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        await self._commit()
        await self.db.refresh(transaction)
        return transaction

    async def update(self, transaction: Transaction) -> Transaction:
        transaction.updated_at = datetime.utcnow()
        merged = await self.db.merge(transaction)
        await self._commit()
        return merged
