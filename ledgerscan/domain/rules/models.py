from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import validates

from ledgerscan.core.database import Base
from ledgerscan.core.patterns import normalize_extractions, normalize_patterns

PATTERN_LIST_FIELDS = (
    "sender_match",
    "subject_match",
    "amount_regex",
    "merchant_condition",
    "merchant_common_patterns",
    "skip_condition",
    "date_regex",
)


class Rule(Base):
    """User-editable template describing how to turn a message into a transaction."""

    __tablename__ = "rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    transaction_type = Column(String, default="expense", nullable=False)  # income, expense
    sender_match = Column(JSON, default=list, nullable=False)
    subject_match = Column(JSON, default=list, nullable=False)
    amount_regex = Column(JSON, default=list, nullable=False)
    merchant_extractions = Column(JSON, default=list, nullable=False)
    merchant_condition = Column(JSON, default=list, nullable=False)
    merchant_common_patterns = Column(JSON, default=list, nullable=False)
    skip_condition = Column(JSON, default=list, nullable=False)
    date_regex = Column(JSON, default=list, nullable=False)
    payment_method = Column(String, default="", nullable=False)
    currency = Column(String(3), nullable=True)
    priority = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        for field in PATTERN_LIST_FIELDS + ("merchant_extractions",):
            kwargs.setdefault(field, [])
        kwargs.setdefault("enabled", True)
        kwargs.setdefault("transaction_type", "expense")
        kwargs.setdefault("payment_method", "")
        kwargs.setdefault("priority", 0)
        kwargs.setdefault("success_count", 0)
        super().__init__(**kwargs)

    @validates(*PATTERN_LIST_FIELDS)
    def _validate_patterns(self, key, value):
        return normalize_patterns(value)

    @validates("merchant_extractions")
    def _validate_extractions(self, key, value):
        return normalize_extractions(value)

    def __repr__(self) -> str:
        return f"Rule(id={self.id}, name={self.name!r}, priority={self.priority})"
