"""Schemas exchanged by the message scanning workflow."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledgerscan.domain.rules.schemas import RuleCreate
from ledgerscan.domain.transactions.schemas import TransactionOut


EPOCH_MS_MIN_DIGITS = 10


class MessageSource(str, Enum):
    """Where a raw message came from."""

    SMS = "sms"
    EMAIL = "email"


def to_naive_utc(value: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; the database stores naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class RawMessage(BaseModel):
    """One SMS or email body after the upstream bridge extracted its text."""

    id: Optional[str] = None
    sender: str = ""
    text: str
    date: datetime = Field(default_factory=datetime.utcnow)
    subject: Optional[str] = None
    source: MessageSource = MessageSource.SMS

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        """Accept epoch milliseconds as delivered by the Android SMS bridge.

        Digit strings shorter than 10 characters are not timestamps; an 8-digit
        one is read as a compact ``YYYYMMDD`` date.
        """
        if isinstance(value, str) and value.strip().isdigit():
            digits = value.strip()
            if len(digits) >= EPOCH_MS_MIN_DIGITS:
                value = int(digits)
            elif len(digits) == 8:
                return datetime.strptime(digits, "%Y%m%d")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return value

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator("id", mode="before")
    @classmethod
    def blank_id(cls, value: Any) -> Any:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


@dataclass
class MatchResult:
    """Fields extracted from a message by the first rule that matched it."""

    rule: Any
    amount: Decimal
    merchant_name: str
    transaction_type: str
    payment_method: str
    date: Optional[datetime] = None
    errors: List[str] = field(default_factory=list)


class ScanOutcome(BaseModel):
    """Aggregate counts reported once per scan."""

    success_count: int = 0
    duplicate_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0

    @property
    def total_processed(self) -> int:
        return self.success_count + self.duplicate_count + self.skipped_count + self.failed_count

    def summary(self) -> dict[str, int]:
        data = self.model_dump()
        data["total_processed"] = self.total_processed
        return data


class ScanRequest(BaseModel):
    """Request body for scanning a batch of raw messages."""

    messages: List[RawMessage]
    duplicate_window_seconds: Optional[int] = Field(default=None, ge=0)
    global_skip: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class ScanResponse(BaseModel):
    """Response body returned after a scan."""

    transactions: List[TransactionOut]
    success_count: int
    duplicate_count: int
    skipped_count: int
    failed_count: int
    total_processed: int
    cancelled: bool = False


class RuleTestRequest(BaseModel):
    """Dry-run a message against stored rules, or against rules supplied inline."""

    message: RawMessage
    rules: Optional[List[RuleCreate]] = None

    model_config = ConfigDict(extra="forbid")


class RuleTestResponse(BaseModel):
    """What the matcher would have produced for a message."""

    matched: bool
    globally_skipped: bool = False
    rule_id: Optional[int] = None
    rule_name: Optional[str] = None
    transaction_type: Optional[str] = None
    amount: Optional[Decimal] = None
    merchant_name: Optional[str] = None
    payment_method: Optional[str] = None
    date: Optional[datetime] = None
    errors: List[str] = Field(default_factory=list)


class SuggestRequest(BaseModel):
    """Sample message text to derive starter patterns from."""

    text: str


class PatternSuggestions(BaseModel):
    """Candidate regex patterns for a new rule."""

    amount_patterns: List[str]
    merchant_patterns: List[str]
    merchant_cleaning_patterns: List[str]
