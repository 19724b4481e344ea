"""Turning raw bank messages into transactions."""

from .matcher import RuleMatcher
from .schemas import MatchResult, MessageSource, RawMessage, ScanOutcome
from .services import ScanOrchestrator, ScanResult

__all__ = [
    "MatchResult",
    "MessageSource",
    "RawMessage",
    "RuleMatcher",
    "ScanOrchestrator",
    "ScanOutcome",
    "ScanResult",
]
