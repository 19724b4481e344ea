"""Pydantic schemas for merchant note payloads."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MerchantNoteBase(BaseModel):
    """Shared attributes for merchant note payloads."""

    merchant_name: str | None = Field(default=None, max_length=200)
    category: str | None = None
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("merchant_name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("merchant_name cannot be blank")
        return value


class MerchantNoteCreate(MerchantNoteBase):
    """Schema for creating a merchant note."""

    merchant_name: str = Field(..., max_length=200)
    category: str = ""
    notes: str = ""


class MerchantNoteUpdate(MerchantNoteBase):
    """Schema for updating a merchant note."""


class MerchantNoteOut(BaseModel):
    """Schema for returning merchant note data."""

    id: int
    merchant_name: str
    category: str
    notes: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
