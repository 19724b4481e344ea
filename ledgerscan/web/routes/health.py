import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerscan.core.config import settings
from ledgerscan.core.database import get_db
from ledgerscan.domain.rules.models import Rule

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", summary="Health check")
async def health(db: AsyncSession = Depends(get_db)) -> dict:
    """Report database reachability and how many rules are active."""
    enabled_rules = None
    try:
        result = await db.execute(select(func.count(Rule.id)).where(Rule.enabled.is_(True)))
        enabled_rules = result.scalar_one()
        db_status = "ok"
    except SQLAlchemyError:
        db_status = "error"
        logger.exception("Database healthcheck failed")

    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "database": db_status,
        "enabled_rules": enabled_rules,
    }
