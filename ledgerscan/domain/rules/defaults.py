"""Starter SMS rules for common Indian bank senders."""
from __future__ import annotations

import logging
from typing import List

from ledgerscan.domain.rules.models import Rule

logger = logging.getLogger(__name__)

GENERAL_BANK_SENDERS = [
    "SBIINB", "SBICRD", "SBIPSG ", "SBIPAY", "HDFCBN", "HDFCCB", "HDFCBK",
    "ICICIM", "ICICIN", "ICICIB", "AXISRM", "AXICRD", "AXISBK", "KOTAKM",
    "KOTAKB", "BOBANK", "BARODA", "BOBSMS", "PNBANK", "PUNBNK", "PNBMSG",
    "CNRBNK", "CANBNK", "IDFCBK", "IDFCFB", "INDUSB", "YESBNK", "FEDSMS",
    "FEDBNK", "UNIONB", "UBININ", "BOIBNK", "BOIIND", "RBLCRD", "RBLBNK",
    "IDBIBK", "AUBANK", "UJJIVN", "DBSBNK", "PYTMPB", "PAYTMP", "AIRTPB",
    "JIOPBK", "EQUITB", "SURYBK",
]

DEFAULT_RULES: List[dict] = [
    {
        "name": "HDFC Bank Credit Card",
        "transaction_type": "expense",
        "sender_match": ["HDFCBK", "HDFC-VM"],
        "amount_regex": [
            r"Rs\.?\s*([\d,]+\.?\d*)",
            r"Rs\s*([\d,]+\.?\d*)",
            r"INR\s*([\d,]+\.?\d*)",
        ],
        "merchant_extractions": [
            {"start_text": "at", "end_text": "on", "start_index": 1},
            {"start_text": "to", "end_text": "on", "start_index": 1},
        ],
        "merchant_common_patterns": [r"^(.+?)\s+on\s+\d+", r"^(.+?)\."],
        "payment_method": "HDFC Bank",
        "priority": 20,
    },
    {
        "name": "ICICI Bank UPI",
        "transaction_type": "expense",
        "sender_match": ["ICICIB", "ICICI", "ICINB"],
        "amount_regex": [
            r"Rs\.?\s*([\d,]+\.?\d*)\s+paid",
            r"Rs\.?\s*([\d,]+\.?\d*)\s+debited",
            r"Rs\.?\s*([\d,]+\.?\d*)",
        ],
        "merchant_extractions": [
            {"start_text": "to", "end_text": "on", "start_index": 1},
            {"start_text": "to", "end_text": ".", "start_index": 1},
        ],
        "merchant_common_patterns": [r"^(.+?)\s+on\s+\d+", r"^(.+?)\s+via\s+", r"^(.+?)\."],
        "payment_method": "ICICI Bank",
        "priority": 15,
    },
    {
        "name": "General Bank Transaction",
        "transaction_type": "expense",
        "sender_match": GENERAL_BANK_SENDERS,
        "amount_regex": [
            r"Rs\.?\s*([\d,]+\.?\d*)",
            r"INR\s*([\d,]+\.?\d*)",
            r"Amount:?\s*Rs\.?\s*([\d,]+\.?\d*)",
        ],
        "merchant_extractions": [
            {"start_text": "at", "end_text": "on", "start_index": 1},
            {"start_text": "to", "end_text": "on", "start_index": 1},
            {"start_text": "at", "end_text": ".", "start_index": 1},
            {"start_text": "to", "end_text": ".", "start_index": 1},
        ],
        "merchant_common_patterns": [r"^(.+?)\s+on\s+\d+", r"^(.+?)\s+via\s+", r"^(.+?)\."],
        "payment_method": "Other Bank",
        "priority": 10,
    },
]


async def ensure_default_rules(repository) -> List[Rule]:
    """Insert the starter rules when the rule table is empty."""
    if await repository.get_all():
        return []

    created = []
    for data in DEFAULT_RULES:
        created.append(await repository.add(Rule(**data)))
    logger.info("Seeded %s default rules", len(created))
    return created
