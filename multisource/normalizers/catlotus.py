"""Catlotus card search normalizer.

The search endpoint groups copies of a card by printing:
``{"stock": {"<group>": [card, ...], ...}}``. Older deployments returned a
single list under ``stock`` and both are accepted.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional
from urllib.parse import quote

from multisource.exceptions import SourceMalformedResponse
from multisource.models import CanonicalOffer
from multisource.normalizers.base import (
    ParseContext,
    clean_text,
    collect_offers,
    dig,
    positive_quantity,
    require_mapping,
    text_value,
)
from multisource.utils.currency import to_price

CONDITION_BY_ESTADO = {
    0: "Near Mint",
    1: "Lightly Played",
    2: "Moderately Played",
    3: "Heavily Played",
}


def _iter_cards(stock: Any) -> Iterator[dict]:
    groups = stock.values() if isinstance(stock, dict) else [stock]
    for group in groups:
        if not isinstance(group, list):
            continue
        for card in group:
            if isinstance(card, dict):
                yield card


def _condition(estado: Any) -> Optional[str]:
    try:
        return CONDITION_BY_ESTADO.get(int(estado))
    except (TypeError, ValueError):
        return None


def _product_url(card: dict, context: ParseContext) -> str:
    root = context.source_url.rstrip("/")
    name = clean_text(card.get("nombre")) or context.query
    set_code = str(card.get("set") or card.get("set_code") or "").strip().lower()
    if set_code and clean_text(card.get("nombre")):
        collector = str(card.get("collector_number") or "").strip() or "default"
        return (
            f"{root}/cardview/{quote(set_code)}/{quote(name.lower(), safe='')}"
            f"/{quote(collector, safe='')}/single-part"
        )
    return f"{root}/search?q={quote(name, safe='')}"


def _offer(card: dict, context: ParseContext) -> CanonicalOffer:
    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=clean_text(card.get("nombre")) or context.query,
        price=to_price(card.get("precio"), zero_is_unpriced=context.zero_price_is_unpriced),
        in_stock=positive_quantity(card.get("stock")),
        product_url=_product_url(card, context),
        image_url=text_value(dig(card, "image_uris", "normal"))
        or text_value(dig(card, "image_uris", "large")),
        condition=_condition(card.get("estado")),
        set_name=clean_text(card.get("set_name") or card.get("set")),
    )


def normalize_catlotus_stock(payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    data = require_mapping(payload, context)
    if "stock" not in data:
        raise SourceMalformedResponse(context.source_name, "Missing stock container")
    stock = data["stock"]
    if stock is None:
        return []
    if not isinstance(stock, (dict, list)):
        raise SourceMalformedResponse(context.source_name, "stock is neither an object nor an array")
    return collect_offers(_iter_cards(stock), context, _offer)
