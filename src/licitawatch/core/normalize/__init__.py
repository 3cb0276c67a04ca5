"""Normalization of feed text into canonical records."""

from .parsing import (
    ParsedMoney,
    amount_value,
    format_eur,
    normalize_amount_token,
    parse_amount,
    parse_timestamp,
    strip_tags,
    truncate,
    utc_now_iso,
)
from .canonical import SUMMARY_LIMIT, TenderRecord, fallback_id

__all__ = [
    # Parsing
    "ParsedMoney",
    "amount_value",
    "format_eur",
    "normalize_amount_token",
    "parse_amount",
    "parse_timestamp",
    "strip_tags",
    "truncate",
    "utc_now_iso",
    # Canonical
    "SUMMARY_LIMIT",
    "TenderRecord",
    "fallback_id",
]
