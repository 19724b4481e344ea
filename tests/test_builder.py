from datetime import datetime
from decimal import Decimal

from conftest import make_rule
from ledgerscan.domain.scanning.builder import build_transaction
from ledgerscan.domain.scanning.schemas import MatchResult, RawMessage


def _match(rule, **overrides):
    data = dict(
        rule=rule,
        amount=Decimal("250.00"),
        merchant_name="Swiggy",
        transaction_type="expense",
        payment_method="HDFC Bank",
    )
    data.update(overrides)
    return MatchResult(**data)


def test_sms_transaction_defaults():
    rule = make_rule(id=7)
    message = RawMessage(id="42", sender="VM-HDFCBK", text="...", date=datetime(2024, 3, 1, 9, 30))

    txn = build_transaction(message, _match(rule))

    assert txn.id is None
    assert txn.merchant_name == "Swiggy"
    assert txn.amount == Decimal("250.00")
    assert txn.category == "other"
    assert txn.notes == "Auto-extracted from SMS"
    assert txn.currency == "INR"
    assert txn.source == "sms"
    assert txn.external_id == "42"
    assert txn.rule_id == 7
    assert txn.payment_method == "HDFC Bank"
    assert txn.transaction_date == datetime(2024, 3, 1, 9, 30)


def test_email_transaction_uses_subject_currency_and_extracted_date():
    rule = make_rule(currency="USD")
    message = RawMessage(
        sender="alerts@bank.com",
        subject="Card charge",
        text="...",
        source="email",
        date=datetime(2024, 3, 1, 9, 30),
    )

    txn = build_transaction(message, _match(rule, date=datetime(2024, 2, 28)))

    assert txn.notes == "Auto-extracted from email"
    assert txn.description == "Card charge"
    assert txn.currency == "USD"
    assert txn.source == "email"
    assert txn.external_id is None
    assert txn.transaction_date == datetime(2024, 2, 28)
