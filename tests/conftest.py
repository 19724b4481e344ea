from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ledgerscan.core.database import Base, StoreError, install_sqlite_pragmas
from ledgerscan.domain.merchant_notes.models import MerchantNote
from ledgerscan.domain.rules.models import Rule
from ledgerscan.domain.transactions.models import Transaction


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    install_sqlite_pragmas(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def make_rule(**overrides) -> Rule:
    data = {
        "name": "Test rule",
        "sender_match": ["HDFCBK"],
        "amount_regex": [r"Rs\.?\s*([\d,]+\.?\d*)"],
        "priority": 0,
    }
    data.update(overrides)
    return Rule(**data)


def make_merchant_note(**overrides) -> MerchantNote:
    data = {"merchant_name": "Swiggy", "category": "dining", "notes": "food delivery"}
    data.update(overrides)
    return MerchantNote(**data)


def make_transaction(**overrides) -> Transaction:
    data = {
        "merchant_name": "Swiggy",
        "amount": Decimal("250.00"),
        "currency": "INR",
        "transaction_type": "expense",
        "category": "other",
        "notes": "Auto-extracted from SMS",
        "source": "sms",
        "transaction_date": datetime(2024, 3, 1, 12, 0, 0),
    }
    data.update(overrides)
    return Transaction(**data)


class MemoryRuleStore:
    """Rule store double that records updates."""

    def __init__(self, rules=None):
        self.rules = list(rules or [])
        self.updated = []

    async def get_all(self):
        return list(self.rules)

    async def update(self, rule):
        self.updated.append(rule)
        return rule


class MemoryTransactionStore:
    """Transaction store double; ``fail_on_add`` raises StoreError on that add call (1-based)."""

    def __init__(self, transactions=None, fail_on_add=None):
        self.transactions = list(transactions or [])
        self.updated = []
        self.fail_on_add = fail_on_add
        self._next_id = len(self.transactions) + 1
        self.add_calls = 0

    async def get_all(self):
        return list(self.transactions)

    async def add(self, transaction):
        self.add_calls += 1
        if self.add_calls == self.fail_on_add:
            raise StoreError("disk full")
        transaction.id = self._next_id
        self._next_id += 1
        self.transactions.append(transaction)
        return transaction

    async def update(self, transaction):
        self.updated.append(transaction)
        return transaction


@pytest.fixture
def rule_store():
    return MemoryRuleStore()


@pytest.fixture
def transaction_store():
    return MemoryTransactionStore()


class MemoryMerchantNoteStore:
    def __init__(self, notes=None):
        self.notes = list(notes or [])

    async def get_all(self):
        return list(self.notes)
