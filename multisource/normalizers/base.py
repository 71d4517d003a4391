"""Shared helpers for per-shape response normalizers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from multisource.constants import DEFAULT_MAX_RESULTS_PER_SOURCE
from multisource.exceptions import SourceMalformedResponse
from multisource.models import CanonicalOffer
from observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParseContext:
    """Per-source facts a normalizer needs besides the payload itself."""

    source_name: str
    source_url: str
    query: str
    max_results: int = DEFAULT_MAX_RESULTS_PER_SOURCE
    zero_price_is_unpriced: bool = False


def require_mapping(payload: Any, context: ParseContext, what: str = "response") -> dict:
    if not isinstance(payload, dict):
        raise SourceMalformedResponse(
            context.source_name,
            f"Expected an object for {what}, got {type(payload).__name__}",
        )
    return payload


def require_list(payload: Any, context: ParseContext, what: str = "response") -> list:
    if not isinstance(payload, list):
        raise SourceMalformedResponse(
            context.source_name,
            f"Expected an array for {what}, got {type(payload).__name__}",
        )
    return payload


def dig(data: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def positive_quantity(value: Any) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def text_value(value: Any) -> Optional[str]:
    """Strings only; anything else (lists, dicts, numbers) reads as missing."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def cap(offers: List[CanonicalOffer], context: ParseContext) -> List[CanonicalOffer]:
    if context.max_results and context.max_results > 0:
        return offers[: context.max_results]
    return offers


def collect_offers(
    items: Iterable[Any],
    context: ParseContext,
    to_offer: Callable[[Any, ParseContext], Optional[CanonicalOffer]],
) -> List[CanonicalOffer]:
    """Build one offer per item; a broken item is logged and skipped."""
    offers: List[CanonicalOffer] = []
    for item in items:
        try:
            offer = to_offer(item, context)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(
                f"Skipping unreadable item from {context.source_name}",
                extra={
                    "event": "item_skipped",
                    "source": context.source_name,
                    "error": f"{type(e).__name__}: {e}"[:200],
                },
            )
            continue
        if offer is not None:
            offers.append(offer)
    return cap(offers, context)
