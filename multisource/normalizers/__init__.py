"""Response normalizers, one pure function per upstream response shape."""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from multisource.exceptions import ConfigurationError
from multisource.models import CanonicalOffer
from multisource.normalizers.base import ParseContext
from multisource.normalizers.card_results import normalize_card_results
from multisource.normalizers.catlotus import normalize_catlotus_stock
from multisource.normalizers.html import normalize_html_search
from multisource.normalizers.shopify import normalize_shopify_suggest
from multisource.normalizers.tcgmatch import normalize_tcgmatch_items
from multisource.normalizers.woocommerce import normalize_woocommerce_products

Normalizer = Callable[[Any, ParseContext], List[CanonicalOffer]]

NORMALIZER_REGISTRY: Dict[str, Normalizer] = {
    "shopify_suggest": normalize_shopify_suggest,
    "woocommerce": normalize_woocommerce_products,
    "tcgmatch": normalize_tcgmatch_items,
    "catlotus": normalize_catlotus_stock,
    "html_search": normalize_html_search,
    "card_results": normalize_card_results,
}


def get_normalizer(shape: str) -> Normalizer:
    normalizer = NORMALIZER_REGISTRY.get(shape)
    if not normalizer:
        raise ConfigurationError("Unknown response shape", detail={"shape": shape})
    return normalizer


def normalize_payload(shape: str, payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    return get_normalizer(shape)(payload, context)


__all__ = [
    "NORMALIZER_REGISTRY",
    "Normalizer",
    "ParseContext",
    "get_normalizer",
    "normalize_payload",
    "normalize_shopify_suggest",
    "normalize_woocommerce_products",
    "normalize_tcgmatch_items",
    "normalize_catlotus_stock",
    "normalize_html_search",
    "normalize_card_results",
]
