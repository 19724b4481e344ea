from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from ledgerscan.core.config import settings
from ledgerscan.core.database import AsyncSessionLocal, init_db
from ledgerscan.core.logging_config import setup_logging
from ledgerscan.domain.rules.defaults import ensure_default_rules
from ledgerscan.domain.rules.repository import RuleRepository
from ledgerscan.web.routes import api, health

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize app on startup."""
    await init_db()
    if settings.SEED_DEFAULT_RULES:
        async with AsyncSessionLocal() as session:
            await ensure_default_rules(RuleRepository(session))
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Turns bank SMS and email notifications into transactions",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(api.router, prefix="/api", tags=["api"])
app.include_router(health.router, tags=["health"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
