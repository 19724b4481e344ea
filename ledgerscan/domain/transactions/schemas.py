"""Pydantic schemas for transaction payloads."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class TransactionOut(BaseModel):
    """Schema for returning transaction data."""

    id: int
    merchant_name: str
    amount: Decimal
    currency: str
    transaction_type: Literal["income", "expense"]
    category: Optional[str]
    notes: Optional[str]
    description: Optional[str]
    payment_method: Optional[str]
    source: Literal["sms", "email", "manual"]
    external_id: Optional[str]
    rule_id: Optional[int]
    transaction_date: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class EnrichmentResponse(BaseModel):
    """Result of re-applying merchant history to stored transactions."""

    updated: int
