"""JSON API router."""
from __future__ import annotations

from fastapi import APIRouter

from ledgerscan.web.routes import api_merchant_notes
from ledgerscan.web.routes import api_rules
from ledgerscan.web.routes import api_scan
from ledgerscan.web.routes import api_transactions

router = APIRouter()

router.include_router(api_rules.router, prefix="/rules", tags=["rules"])
router.include_router(api_scan.router, tags=["scan"])
router.include_router(api_transactions.router, prefix="/transactions", tags=["transactions"])
router.include_router(api_merchant_notes.router, prefix="/merchant-notes", tags=["merchant-notes"])
