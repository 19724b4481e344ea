"""Async persistence for extraction rules."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.database import StoreError
from ledgerscan.domain.rules.models import Rule

logger = logging.getLogger(__name__)


class RuleRepository:
    """CRUD access to the ``rules`` table for one database session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Rule store commit failed")
            raise StoreError("Could not save rule changes") from exc

    async def get_all(self) -> List[Rule]:
        try:
            result = await self.db.execute(select(Rule).order_by(Rule.id.asc()))
        except SQLAlchemyError as exc:
            raise StoreError("Could not load rules") from exc
        return list(result.scalars().all())

    async def get(self, rule_id: int) -> Optional[Rule]:
        try:
            result = await self.db.execute(select(Rule).where(Rule.id == rule_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load rule {rule_id}") from exc
        return result.scalar_one_or_none()

    async def add(self, rule: Rule) -> Rule:
        self.db.add(rule)
        await self._commit()
        await self.db.refresh(rule)
        logger.info("Created rule %s (%s)", rule.id, rule.name)
        return rule

    async def update(self, rule: Rule) -> Rule:
        rule.updated_at = datetime.utcnow()
        merged = await self.db.merge(rule)
        await self._commit()
        return merged

    async def delete(self, rule_id: int) -> bool:
        rule = await self.get(rule_id)
        if rule is None:
            return False
        await self.db.delete(rule)
        await self._commit()
        logger.info("Deleted rule %s", rule_id)
        return True

    async def set_enabled(self, rule_id: int, enabled: bool) -> Optional[Rule]:
        rule = await self.get(rule_id)
        if rule is None:
            return None
        rule.enabled = enabled
        return await self.update(rule)
