"""
Parsing utilities for normalizing feed text.

Handles Spanish-style money tokens, euro formatting, markup stripping
and feed timestamps.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

import dateparser


# =============================================================================
# Money Parsing
# =============================================================================


@dataclass
class ParsedMoney:
    """Result of parsing a captured numeric token."""
    
    amount: float | None
    original: str
    
    @property
    def ok(self) -> bool:
        return self.amount is not None
    
    @property
    def formatted(self) -> str | None:
        """Display string in Spanish euro format, or None."""
        if self.amount is None:
            return None
        return format_eur(self.amount)


def normalize_amount_token(raw: str) -> str:
    """Rewrite a numeric token so that ``float()`` reads it correctly.
    
    - "600000.00": a single dot with two trailing digits is a decimal point
    - "100.000,00": dots are thousands separators, the comma is decimal
    - "1500,50": a lone comma is decimal
    
    Sentence punctuation right after the number ("45.000,00, IVA excluido")
    is dropped first.
    """
    clean = raw.strip().rstrip(".,")
    
    if "." in clean and "," not in clean:
        if clean.find(".") == len(clean) - 3:
            return clean
    
    if "." in clean and "," in clean:
        return clean.replace(".", "").replace(",", ".", 1)
    if "," in clean:
        return clean.replace(",", ".", 1)
    return clean


def parse_amount(raw: str | None) -> ParsedMoney:
    """Parse a numeric token captured next to an amount label or currency.
    
    Args:
        raw: Token made of digits, dots and commas
        
    Returns:
        ParsedMoney; ``amount`` is None when the token is not a number
    """
    if raw is None:
        return ParsedMoney(amount=None, original="")
    
    normalized = normalize_amount_token(raw)
    
    try:
        value = float(normalized)
    except ValueError:
        return ParsedMoney(amount=None, original=raw)
    
    return ParsedMoney(amount=value, original=raw)


def format_eur(value: float) -> str:
    """Format a value as Spanish euros: ``1234.5`` -> ``"1.234,50 €"``."""
    quantized = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    text = f"{quantized:,.2f}"
    # Swap US separators for Spanish ones
    text = text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")
    return f"{text} €"


def amount_value(formatted: str | None) -> float:
    """Read a formatted euro string back into a number (0.0 when absent)."""
    if not formatted:
        return 0.0
    digits = re.sub(r"[^0-9,]", "", formatted).replace(",", ".", 1)
    try:
        return float(digits)
    except ValueError:
        return 0.0


# =============================================================================
# Text Cleanup
# =============================================================================


_TAG_PATTERN = re.compile(r"<[^>]*>?")


def strip_tags(text: str | None) -> str:
    """Remove markup tags, leaving their text content."""
    if not text:
        return ""
    return _TAG_PATTERN.sub("", text)


def truncate(text: str, limit: int = 300, marker: str = "...") -> str:
    """Cut text to ``limit`` characters and append ``marker`` if it was longer."""
    if len(text) > limit:
        return text[:limit] + marker
    return text


# =============================================================================
# Timestamp Parsing
# =============================================================================


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a feed timestamp into an aware datetime.
    
    Atom ``<updated>`` values are ISO-8601, which is the fast path.
    Anything else goes through dateparser. Naive results are taken as UTC.
    
    Args:
        value: Timestamp string
        
    Returns:
        Aware datetime, or None if the value cannot be read
    """
    if not value or not value.strip():
        return None
    
    text = value.strip()
    
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = dateparser.parse(
            text,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "TO_TIMEZONE": "UTC",
                "DATE_ORDER": "DMY",
            },
        )
    
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
