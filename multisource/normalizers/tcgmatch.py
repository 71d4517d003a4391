"""TCGMatch marketplace search normalizer."""

from __future__ import annotations

from typing import Any, List, Optional

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

PRODUCT_URL_TEMPLATE = "https://tcgmatch.cl/producto/{product_id}"

CONDITION_BY_STATUS = {
    0: "Near Mint",
    1: "Lightly Played",
}
# Sellers may list any other grade; the marketplace groups them as "Good".
FALLBACK_CONDITION = "Good"


def _condition(status: Any) -> Optional[str]:
    if status is None or status == "":
        return None
    try:
        return CONDITION_BY_STATUS.get(int(status), FALLBACK_CONDITION)
    except (TypeError, ValueError):
        return clean_text(status)


def _image(card: Any) -> Optional[str]:
    return text_value(dig(card, "image_uris", "normal")) or text_value(
        dig(card, "image_uris", "large")
    )


def _offer(item: Any, context: ParseContext) -> Optional[CanonicalOffer]:
    if not isinstance(item, dict):
        return None
    card = dig(item, "card", "data")
    if not isinstance(card, dict):
        card = {}
    product_id = clean_text(item.get("_id"))
    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=clean_text(item.get("name")) or context.query,
        price=to_price(item.get("price"), zero_is_unpriced=context.zero_price_is_unpriced),
        in_stock=positive_quantity(item.get("quantity")),
        product_url=PRODUCT_URL_TEMPLATE.format(product_id=product_id) if product_id else None,
        image_url=_image(card),
        condition=_condition(item.get("status")),
        set_name=text_value(card.get("set_name")),
    )


def normalize_tcgmatch_items(payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    data = require_mapping(payload, context)
    if data.get("success") is False:
        return []
    items = dig(data, "data", "items")
    if not isinstance(items, list):
        raise SourceMalformedResponse(context.source_name, "Missing data.items array")
    return collect_offers(items, context, _offer)
