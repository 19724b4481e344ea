import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from conftest import (
    MemoryMerchantNoteStore,
    MemoryRuleStore,
    MemoryTransactionStore,
    make_merchant_note,
    make_rule,
    make_transaction,
)
from ledgerscan.core.database import StoreError
from ledgerscan.domain.rules.repository import RuleRepository
from ledgerscan.domain.scanning.schemas import RawMessage
from ledgerscan.domain.scanning.services import ScanOrchestrator
from ledgerscan.domain.transactions.repository import TransactionRepository

SWIGGY_TEXT = "Rs.250.00 debited from a/c XX1234 to Swiggy on 12-05-23"
NOON = datetime(2024, 3, 1, 12, 0, 0)


def swiggy_rule(**overrides):
    data = dict(
        sender_match=["HDFCBK"],
        merchant_extractions=[{"start_text": "to", "end_text": "on", "start_index": 1}],
        priority=20,
    )
    data.update(overrides)
    return make_rule(**data)


def sms(text=SWIGGY_TEXT, date=NOON, **kwargs):
    kwargs.setdefault("sender", "VM-HDFCBK")
    return RawMessage(text=text, date=date, **kwargs)


def orchestrator(rules, transactions=None, **kwargs):
    rule_store = MemoryRuleStore(rules)
    transaction_store = kwargs.pop("transaction_store", None) or MemoryTransactionStore(transactions)
    return ScanOrchestrator(rule_store, transaction_store, **kwargs), rule_store, transaction_store


async def test_single_message_is_stored():
    scanner, _, store = orchestrator([swiggy_rule()])

    result = await scanner.scan([sms()])

    assert result.success_count == 1
    assert len(store.transactions) == 1
    txn = store.transactions[0]
    assert txn.merchant_name == "Swiggy"
    assert txn.amount == Decimal("250.00")
    assert result.transactions == [txn]


async def test_repeat_within_window_is_duplicate():
    scanner, _, store = orchestrator([swiggy_rule()])

    result = await scanner.scan([sms(), sms(date=NOON + timedelta(seconds=10))])

    assert result.success_count == 1
    assert result.duplicate_count == 1
    assert len(store.transactions) == 1


async def test_duplicate_of_previously_stored_transaction():
    existing = make_transaction(id=1, transaction_date=NOON)
    scanner, _, store = orchestrator([swiggy_rule()], [existing])

    result = await scanner.scan([sms(date=NOON + timedelta(seconds=5))])

    assert result.duplicate_count == 1
    assert store.transactions == [existing]


async def test_rescanning_same_batch_is_idempotent():
    scanner, _, store = orchestrator([swiggy_rule()])
    batch = [sms(id="a1"), sms(id="a2", text="Rs.99 debited to Uber on 12-05-23")]

    first = await scanner.scan(batch)
    second = await scanner.scan(batch)

    assert first.success_count == 2
    assert second.duplicate_count == 2
    assert len(store.transactions) == 2


async def test_window_override_per_orchestrator():
    scanner, _, _ = orchestrator([swiggy_rule()], duplicate_window_seconds=0)

    result = await scanner.scan([sms(), sms(date=NOON + timedelta(seconds=10))])

    assert result.success_count == 2


async def test_locally_skipped_message_counts_as_skipped():
    rule = swiggy_rule(skip_condition=["refund"])
    scanner, _, store = orchestrator([rule], global_skip_sources=[])

    result = await scanner.scan([sms(text="Rs.250 refund processed to Swiggy on 12-05-23")])

    assert result.skipped_count == 1
    assert result.failed_count == 0
    assert store.transactions == []


async def test_global_skip_uses_every_enabled_rule():
    vetoing = make_rule(name="otp", sender_match=["NOPE"], skip_condition=["OTP"])
    scanner, _, _ = orchestrator([swiggy_rule(), vetoing])

    result = await scanner.scan([sms(text="OTP 1234. Rs.250 debited to Swiggy on 1")])

    assert result.skipped_count == 1
    assert result.success_count == 0


async def test_global_skip_respects_message_source():
    vetoing = make_rule(name="otp", sender_match=["NOPE"], skip_condition=["OTP"])
    scanner, _, _ = orchestrator([swiggy_rule(), vetoing], global_skip_sources=["sms"])

    result = await scanner.scan(
        [sms(text="OTP 1234. Rs.250 debited to Swiggy on 1", source="email")]
    )

    assert result.success_count == 1


async def test_unmatched_message_is_skipped():
    scanner, _, _ = orchestrator([swiggy_rule()])
    result = await scanner.scan([sms(sender="AX-ICICIB")])
    assert result.skipped_count == 1


async def test_enrichment_applied_before_persisting():
    curated = make_transaction(id=1, category="dining", notes="", transaction_date=NOON - timedelta(days=30))
    scanner, _, store = orchestrator([swiggy_rule()], [curated])

    result = await scanner.scan([sms()])

    assert result.success_count == 1
    assert store.transactions[-1].category == "dining"


async def test_failure_is_contained_per_message(monkeypatch):
    from ledgerscan.domain.scanning import services

    real_build = services.build_transaction
    calls = {"n": 0}

    def flaky_build(message, match):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("boom")
        return real_build(message, match)

    monkeypatch.setattr(services, "build_transaction", flaky_build)
    scanner, _, store = orchestrator([swiggy_rule()])
    messages = [
        sms(id="1"),
        sms(id="2", text="Rs.10 debited to Uber on 1"),
        sms(id="3", text="Rs.20 debited to Ola on 1"),
        sms(id="4", sender="AX-NOPE"),
    ]

    result = await scanner.scan(messages)

    assert result.success_count == 2
    assert result.failed_count == 1
    assert result.skipped_count == 1
    assert result.outcome.total_processed == len(messages)
    assert [t.external_id for t in store.transactions] == ["1", "3"]


async def test_store_error_propagates_and_keeps_earlier_writes():
    store = MemoryTransactionStore(fail_on_add=2)
    scanner, _, _ = orchestrator([swiggy_rule()], transaction_store=store)
    messages = [sms(id="1"), sms(id="2", text="Rs.10 debited to Uber on 1"), sms(id="3")]

    with pytest.raises(StoreError):
        await scanner.scan(messages)

    assert [t.external_id for t in store.transactions] == ["1"]


async def test_rule_statistics_written_back():
    rule = swiggy_rule()
    scanner, rule_store, _ = orchestrator([rule])

    await scanner.scan([sms(id="1"), sms(id="2", text="Rs.10 debited to Uber on 1")])

    assert rule.success_count == 2
    assert rule_store.updated == [rule, rule]


async def test_cancellation_stops_between_messages():
    cancel = asyncio.Event()
    outcomes = []

    def on_complete(outcome):
        outcomes.append(outcome)

    scanner, _, store = orchestrator([swiggy_rule()], cancel_event=cancel, on_complete=on_complete)
    real_add = store.add

    async def add_then_cancel(transaction):
        saved = await real_add(transaction)
        cancel.set()
        return saved

    store.add = add_then_cancel
    result = await scanner.scan([sms(id="1"), sms(id="2", text="Rs.10 debited to Uber on 1")])

    assert result.cancelled
    assert result.success_count == 1
    assert len(store.transactions) == 1
    assert outcomes and outcomes[0].total_processed == 1


async def test_async_completion_callback_receives_outcome():
    seen = []

    async def on_complete(outcome):
        seen.append(outcome.summary())

    scanner, _, _ = orchestrator([swiggy_rule()], on_complete=on_complete)
    await scanner.scan([sms(), sms(sender="AX-NOPE")])

    assert seen == [
        {
            "success_count": 1,
            "duplicate_count": 0,
            "skipped_count": 1,
            "failed_count": 0,
            "total_processed": 2,
        }
    ]


async def test_rules_loaded_from_store_when_not_given():
    scanner, _, store = orchestrator([swiggy_rule()])
    result = await scanner.scan([sms()], rules=None)
    assert result.success_count == 1

    result = await scanner.scan([sms(id="x", text="Rs.5 debited to Ola on 1")], rules=[])
    assert result.skipped_count == 1


async def test_rescan_through_repositories_rounds_to_stored_cents(db):
    rules = RuleRepository(db)
    transactions = TransactionRepository(db)
    await rules.add(swiggy_rule())
    message = sms(text="Rs.10.125 debited to Swiggy on 1")

    first = await ScanOrchestrator(rules, transactions).scan([message])
    second = await ScanOrchestrator(rules, transactions).scan([message])

    assert first.success_count == 1
    assert first.transactions[0].amount == Decimal("10.13")
    assert second.duplicate_count == 1
    assert second.success_count == 0
    stored = await transactions.get_all()
    assert [t.amount for t in stored] == [Decimal("10.13")]


async def test_broken_rule_does_not_stop_the_batch():
    broken = swiggy_rule(id=1, name="broken", amount_regex=["Rs([0-9"], priority=50)
    healthy = swiggy_rule(id=2, name="healthy")
    scanner, rule_store, store = orchestrator([broken, healthy])
    messages = [
        sms(id="1"),
        sms(id="2", text="Rs.99 debited to Uber on 12-05-23"),
        sms(id="3", text="Rs.45.50 debited to Ola on 12-05-23"),
    ]

    result = await scanner.scan(messages)

    assert result.success_count == 3
    assert result.failed_count == 0
    assert [(t.merchant_name, t.amount, t.rule_id) for t in store.transactions] == [
        ("Swiggy", Decimal("250.00"), healthy.id),
        ("Uber", Decimal("99.00"), healthy.id),
        ("Ola", Decimal("45.50"), healthy.id),
    ]
    assert healthy.success_count == 3
    assert broken.success_count == 0
    assert broken.last_error
    assert broken in rule_store.updated


async def test_merchant_note_applied_to_new_transactions():
    curated = make_transaction(id=1, category="groceries", notes="", transaction_date=NOON - timedelta(days=3))
    notes = MemoryMerchantNoteStore([make_merchant_note(merchant_name="swiggy", notes="")])
    scanner, _, store = orchestrator([swiggy_rule()], [curated], merchant_note_store=notes)

    await scanner.scan([sms()])

    txn = store.transactions[-1]
    assert txn.category == "dining"
    assert txn.notes == "Auto-extracted from SMS"
