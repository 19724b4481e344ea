"""Pydantic schemas for rule operations."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ledgerscan.core.patterns import normalize_extractions, normalize_patterns

PATTERN_FIELDS = (
    "sender_match",
    "subject_match",
    "amount_regex",
    "merchant_condition",
    "merchant_common_patterns",
    "skip_condition",
    "date_regex",
)


class MerchantExtraction(BaseModel):
    """Anchor pair locating the merchant between two markers."""

    start_text: str = ""
    end_text: str = ""
    start_index: int = Field(default=1, ge=1)


class RuleBase(BaseModel):
    """Shared attributes for rule payloads."""

    name: str | None = None
    enabled: bool | None = None
    transaction_type: Literal["income", "expense"] | None = None
    sender_match: List[str] | None = None
    subject_match: List[str] | None = None
    amount_regex: List[str] | None = None
    merchant_extractions: List[MerchantExtraction] | None = None
    merchant_condition: List[str] | None = None
    merchant_common_patterns: List[str] | None = None
    skip_condition: List[str] | None = None
    date_regex: List[str] | None = None
    payment_method: str | None = None
    currency: Optional[str] = None
    priority: int | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*PATTERN_FIELDS, mode="before")
    @classmethod
    def coerce_patterns(cls, value: Any) -> list[str] | None:
        """Accept a single pattern or a list of patterns."""
        if value is None:
            return None
        return normalize_patterns(value)

    @field_validator("merchant_extractions", mode="before")
    @classmethod
    def coerce_extractions(cls, value: Any) -> list[dict] | None:
        if value is None:
            return None
        return normalize_extractions(value)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if len(value) != 3 or not value.isalpha():
            raise ValueError("currency must be a 3-letter code")
        return value.upper()


class RuleCreate(RuleBase):
    """Schema for creating a rule."""

    name: str
    enabled: bool = True
    transaction_type: Literal["income", "expense"] = "expense"
    sender_match: List[str]
    amount_regex: List[str]
    payment_method: str = ""
    priority: int = 0

    @model_validator(mode="after")
    def require_core_patterns(self) -> "RuleCreate":
        if self.enabled and not self.sender_match:
            raise ValueError("sender_match needs at least one pattern for an enabled rule")
        if self.enabled and not self.amount_regex:
            raise ValueError("amount_regex needs at least one pattern for an enabled rule")
        return self

    def to_model_kwargs(self) -> dict:
        return self.model_dump(exclude_none=True)


class RuleUpdate(RuleBase):
    """Schema for updating a rule."""

    def to_model_kwargs(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class RuleOut(BaseModel):
    """Schema for returning rule data."""

    id: int
    name: str
    enabled: bool
    transaction_type: Literal["income", "expense"]
    sender_match: List[str]
    subject_match: List[str]
    amount_regex: List[str]
    merchant_extractions: List[MerchantExtraction]
    merchant_condition: List[str]
    merchant_common_patterns: List[str]
    skip_condition: List[str]
    date_regex: List[str]
    payment_method: str
    currency: Optional[str]
    priority: int
    success_count: int
    last_error: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class RuleToggleRequest(BaseModel):
    """Schema for enabling or disabling a rule."""

    enabled: bool

    model_config = ConfigDict(extra="forbid")
