from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    ForeignKey,
    Text,
    Index,
)
from ledgerscan.core.database import Base


class Transaction(Base):
    """Financial transaction extracted from a message or entered by hand."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_merchant_date", "merchant_name", "transaction_date"),
        Index("ix_transactions_external_id", "external_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    merchant_name = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)  # always a magnitude; direction is transaction_type
    currency = Column(String(3), nullable=False, default="INR")
    transaction_type = Column(String, nullable=False)  # income, expense
    category = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    payment_method = Column(String, nullable=True)
    source = Column(String, nullable=False, default="manual")  # sms, email, manual
    external_id = Column(String, nullable=True)
    rule_id = Column(
        Integer,
        ForeignKey("rules.id", ondelete="SET NULL"),
        nullable=True,
    )
    transaction_date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id}, merchant={self.merchant_name!r}, "
            f"amount={self.amount}, type={self.transaction_type})"
        )
