from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import validates

from ledgerscan.core.database import Base


class MerchantNote(Base):
    """User-curated category and notes applied to every new transaction of a merchant."""

    __tablename__ = "merchant_notes"

    id = Column(Integer, primary_key=True, index=True)
    merchant_name = Column(String, nullable=False, unique=True, index=True)
    category = Column(String, default="", nullable=False)
    notes = Column(Text, default="", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("merchant_name")
    def _strip_name(self, key, value):
        return (value or "").strip()

    @property
    def lookup_key(self) -> str:
        return (self.merchant_name or "").lower()

    def __repr__(self) -> str:
        return f"MerchantNote(id={self.id}, merchant={self.merchant_name!r}, category={self.category!r})"
