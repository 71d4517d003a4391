"""Utility helpers for price parsing, canonical URLs and redaction."""

from .url import absolute_url, canonicalize_url
from .currency import (
    KNOWN_CURRENCIES,
    normalize_currency_code,
    parse_amount,
    to_price,
)
from .security import redact_secrets_from_text

__all__ = [
    "absolute_url",
    "canonicalize_url",
    "KNOWN_CURRENCIES",
    "normalize_currency_code",
    "parse_amount",
    "to_price",
    "redact_secrets_from_text",
]
