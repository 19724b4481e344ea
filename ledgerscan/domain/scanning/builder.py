from ledgerscan.core.config import settings
from ledgerscan.domain.scanning.schemas import MatchResult, MessageSource, RawMessage, to_naive_utc
from ledgerscan.domain.transactions.models import Transaction

SOURCE_LABELS = {MessageSource.SMS: "SMS", MessageSource.EMAIL: "email"}


def build_transaction(message: RawMessage, match: MatchResult) -> Transaction:
    """Assemble an unsaved Transaction from a message and the rule that matched it."""
    rule = match.rule
    date = match.date or message.date
    return Transaction(
        merchant_name=match.merchant_name,
        amount=match.amount,
        currency=getattr(rule, "currency", None) or settings.DEFAULT_CURRENCY,
        transaction_type=match.transaction_type,
        category=settings.DEFAULT_CATEGORY,
        notes=f"{settings.AUTO_NOTE_MARKER} {SOURCE_LABELS[message.source]}",
        description=message.subject,
        payment_method=match.payment_method,
        source=message.source.value,
        external_id=message.id,
        rule_id=getattr(rule, "id", None),
        transaction_date=to_naive_utc(date),
    )
