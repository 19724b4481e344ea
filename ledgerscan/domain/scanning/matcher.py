"""Rule ordering and first-match-wins evaluation of a message."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ledgerscan.core.patterns import PatternError, compile_pattern, normalize_patterns
from ledgerscan.domain.scanning.extractor import extract_amount, extract_date, extract_merchant
from ledgerscan.domain.scanning.schemas import MatchResult, MessageSource, RawMessage
from ledgerscan.domain.scanning.skip_filter import find_skip_match

logger = logging.getLogger(__name__)


def _priority_key(rule) -> int:
    return -(rule.priority or 0)


def order_rules(rules: Iterable) -> List:
    """Enabled expense rules, then enabled income rules, each by priority descending.

    ``sorted`` is stable, so rules with equal priority keep their store order.
    """
    enabled = [rule for rule in rules if rule.enabled]
    expense = [rule for rule in enabled if rule.transaction_type != "income"]
    income = [rule for rule in enabled if rule.transaction_type == "income"]
    return sorted(expense, key=_priority_key) + sorted(income, key=_priority_key)


def sender_matches(sender: str, patterns: Iterable[str], errors: Optional[List[str]] = None) -> bool:
    """Case-insensitive substring test, then a case-insensitive regex search."""
    lowered = (sender or "").lower()
    for pattern in patterns:
        if pattern.lower() in lowered:
            return True
        try:
            if compile_pattern(pattern).search(sender or ""):
                return True
        except PatternError as exc:
            logger.warning("%s", exc)
            if errors is not None:
                errors.append(str(exc))
    return False


def subject_matches(subject: Optional[str], patterns: List[str]) -> bool:
    if not patterns or not subject:
        return True
    lowered = subject.lower()
    return any(pattern.lower() in lowered for pattern in patterns)


@dataclass
class MatchAttempt:
    """Result of running a message through an ordered rule list."""

    result: Optional[MatchResult] = None
    rule_errors: List[Tuple[object, List[str]]] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [error for _, errors in self.rule_errors for error in errors]


def try_rule(message: RawMessage, rule) -> Tuple[Optional[MatchResult], List[str]]:
    """Evaluate one rule against one message without touching the store."""
    errors: List[str] = []

    if not sender_matches(message.sender, normalize_patterns(rule.sender_match), errors):
        return None, errors
    if not subject_matches(message.subject, normalize_patterns(rule.subject_match)):
        return None, errors

    vetoed_by = find_skip_match(message.text, normalize_patterns(rule.skip_condition), errors)
    if vetoed_by is not None:
        logger.debug("Rule %s vetoed by skip condition %r", rule.name, vetoed_by)
        return None, errors

    amount = extract_amount(message.text, normalize_patterns(rule.amount_regex), errors)
    if amount is None:
        return None, errors

    sender = message.sender if message.source == MessageSource.EMAIL else None
    merchant = extract_merchant(message.text, rule, errors, sender=sender)
    date = extract_date(message.text, normalize_patterns(rule.date_regex), errors)
    return (
        MatchResult(
            rule=rule,
            amount=amount,
            merchant_name=merchant,
            transaction_type=rule.transaction_type,
            payment_method=rule.payment_method or "",
            date=date,
            errors=list(errors),
        ),
        errors,
    )


class RuleMatcher:
    """Finds the first rule that extracts a transaction from a message.

    ``evaluate`` is pure and is what the rule tester uses. ``match`` also writes
    rule statistics back through the rule store when one is configured.
    """

    def __init__(self, rule_store=None) -> None:
        self.rule_store = rule_store

    def evaluate(self, message: RawMessage, rules: Iterable) -> MatchAttempt:
        attempt = MatchAttempt()
        for rule in order_rules(rules):
            result, errors = try_rule(message, rule)
            if errors:
                attempt.rule_errors.append((rule, errors))
            if result is not None:
                result.errors = attempt.errors
                attempt.result = result
                logger.debug(
                    "Rule %s matched: amount=%s merchant=%r", rule.name, result.amount, result.merchant_name
                )
                break
        return attempt

    async def match(self, message: RawMessage, rules: Iterable) -> Optional[MatchResult]:
        attempt = self.evaluate(message, rules)

        touched = []
        for rule, errors in attempt.rule_errors:
            rule.last_error = errors[-1]
            touched.append(rule)

        if attempt.result is not None:
            rule = attempt.result.rule
            rule.success_count = (rule.success_count or 0) + 1
            rule.last_error = None
            if rule not in touched:
                touched.append(rule)

        if self.rule_store is not None:
            for rule in touched:
                await self.rule_store.update(rule)
        return attempt.result
