"""Normalizer for the local fallback service.

The service fetches a store on our behalf and answers with a list of
already-flattened results::

    [{"store": "Pay2Win", "cardName": "...", "price": "$1.000 CLP",
      "inStock": true, "productUrl": "...", "imageUrl": "...",
      "condition": "Near Mint", "set": "Magic 2010"}]

Prices arrive formatted; listings without one read "Precio no disponible".
"""

from __future__ import annotations

from typing import Any, List, Optional

from multisource.models import CanonicalOffer
from multisource.normalizers.base import (
    ParseContext,
    clean_text,
    collect_offers,
    require_list,
    text_value,
)
from multisource.utils.currency import to_price
from multisource.utils.url import absolute_url


def _offer(item: Any, context: ParseContext) -> Optional[CanonicalOffer]:
    if not isinstance(item, dict):
        return None
    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=clean_text(text_value(item.get("cardName"))) or context.query,
        price=to_price(item.get("price"), zero_is_unpriced=True),
        in_stock=item.get("inStock") is True,
        product_url=absolute_url(context.source_url, item.get("productUrl")),
        image_url=absolute_url(context.source_url, item.get("imageUrl")),
        condition=text_value(item.get("condition")),
        set_name=text_value(item.get("set")),
    )


def normalize_card_results(payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    results = require_list(payload, context, "fallback result list")
    return collect_offers(results, context, _offer)
