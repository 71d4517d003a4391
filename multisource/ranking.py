"""Merge ordering for offers gathered from many sources."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from multisource.models import CanonicalOffer, Money
from multisource.utils.url import canonicalize_url


def offer_sort_key(offer: CanonicalOffer) -> Tuple[bool, bool, float]:
    """In stock first, then priced before unpriced, then cheapest first."""
    if isinstance(offer.price, Money):
        return (not offer.in_stock, False, offer.price.amount)
    return (not offer.in_stock, True, 0.0)


def rank_offers(offers: Iterable[CanonicalOffer]) -> List[CanonicalOffer]:
    # sorted() is stable: equal keys keep dispatch order.
    return sorted(offers, key=offer_sort_key)


def dedupe_within_source(offers: Iterable[CanonicalOffer]) -> List[CanonicalOffer]:
    """Drop repeated listings of one source.

    Two listings are the same when their canonical product URLs match and
    they describe the same copy (condition and set). Offers without a product
    URL are never treated as duplicates.
    """
    seen = set()
    unique: List[CanonicalOffer] = []
    for offer in offers:
        if offer.product_url:
            key = (
                offer.source_name,
                canonicalize_url(offer.product_url),
                offer.condition.casefold(),
                offer.set_name.casefold(),
            )
            if key in seen:
                continue
            seen.add(key)
        unique.append(offer)
    return unique


__all__ = ["offer_sort_key", "rank_offers", "dedupe_within_source"]
