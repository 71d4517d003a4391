"""Price parsing and currency normalization utilities."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from multisource.constants import DEFAULT_CURRENCY
from multisource.models import UNPRICED, Money, Unpriced

KNOWN_CURRENCIES = {"CLP", "USD", "EUR", "ARS", "BRL", "MXN", "PEN", "COP"}

_NUMERIC_CHARS = re.compile(r"[^\d,\.]")

Amount = Union[float, int, str, Decimal, None]


def normalize_currency_code(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    trimmed = code.strip().upper()
    if len(trimmed) != 3 or not trimmed.isalpha():
        return None
    if trimmed not in KNOWN_CURRENCIES:
        return None
    return trimmed


def _normalize_separators(cleaned: str) -> str:
    comma_count = cleaned.count(",")
    dot_count = cleaned.count(".")

    if comma_count and dot_count:
        # Whichever separator comes last is the decimal mark.
        if cleaned.rfind(",") > cleaned.rfind("."):
            return cleaned.replace(".", "").replace(",", ".")
        return cleaned.replace(",", "")
    if comma_count:
        last = cleaned.rfind(",")
        if comma_count == 1 and len(cleaned) - last - 1 != 3:
            return cleaned.replace(",", ".")
        return cleaned.replace(",", "")
    if dot_count:
        # "1.500" and "1.250.000" are CLP thousands; "1500.00" is a decimal.
        last = cleaned.rfind(".")
        if dot_count > 1 or len(cleaned) - last - 1 == 3:
            return cleaned.replace(".", "")
    return cleaned


def parse_amount(value: Amount) -> Optional[Decimal]:
    """Best effort conversion of upstream price values to Decimal.

    Accepts numbers and strings such as ``"$1.500"``, ``"1500.00"`` or
    ``"$ 12.990 CLP"``. Returns None when nothing numeric is present or the
    value is negative.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
    else:
        text = str(value).strip()
        if not text or text.upper() == "N/A":
            return None
        cleaned = _NUMERIC_CHARS.sub("", text)
        if not cleaned or not any(ch.isdigit() for ch in cleaned):
            return None
        try:
            amount = Decimal(_normalize_separators(cleaned))
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def to_price(
    value: Amount,
    currency: Optional[str] = None,
    *,
    zero_is_unpriced: bool = False,
) -> Union[Money, Unpriced]:
    """Map a raw upstream price to Money or the Unpriced sentinel.

    zero_is_unpriced encodes the per-source convention for "0": some stores
    publish 0 for listings with no price set.
    """
    amount = parse_amount(value)
    if amount is None:
        return UNPRICED
    if amount == 0 and zero_is_unpriced:
        return UNPRICED
    code = normalize_currency_code(currency) or DEFAULT_CURRENCY
    return Money(amount=float(amount), currency=code)


__all__ = [
    "KNOWN_CURRENCIES",
    "normalize_currency_code",
    "parse_amount",
    "to_price",
]
