"""Shopify predictive search (search/suggest.json) normalizer."""

from __future__ import annotations

import re
from typing import Any, List, Optional

from multisource.exceptions import SourceMalformedResponse
from multisource.models import CanonicalOffer
from multisource.normalizers.base import (
    ParseContext,
    clean_text,
    collect_offers,
    dig,
    require_mapping,
    text_value,
)
from multisource.utils.currency import to_price
from multisource.utils.url import absolute_url

# Product bodies carry a small details table: <td>Set:</td><td>Dominaria</td>
_SET_ROW = re.compile(r"<td>\s*Set:\s*</td>\s*<td>([^<]+)</td>", re.IGNORECASE)

_CONDITION_KEYWORDS = ("played", "damaged", "mint")


def _condition_from_tags(tags: Any) -> Optional[str]:
    if isinstance(tags, str):
        tags = [tag.strip() for tag in tags.split(",")]
    if not isinstance(tags, list):
        return None
    for tag in tags:
        text = str(tag).strip()
        if any(keyword in text.lower() for keyword in _CONDITION_KEYWORDS):
            return text
    return None


def _set_from_body(body: Any) -> Optional[str]:
    if not isinstance(body, str):
        return None
    match = _SET_ROW.search(body)
    return clean_text(match.group(1)) if match else None


def _image(item: dict, context: ParseContext) -> Optional[str]:
    image = item.get("image")
    if isinstance(image, dict):
        image = image.get("url") or image.get("src")
    image = text_value(image) or text_value(dig(item, "featured_image", "url"))
    return absolute_url(context.source_url, image)


def _product_url(item: dict, context: ParseContext) -> Optional[str]:
    url = absolute_url(context.source_url, item.get("url"))
    if url:
        return url
    handle = clean_text(item.get("handle"))
    if handle:
        return absolute_url(context.source_url, f"/products/{handle}")
    return None


def _offer(item: Any, context: ParseContext) -> Optional[CanonicalOffer]:
    if not isinstance(item, dict):
        return None
    raw_price = item.get("price")
    if raw_price in (None, ""):
        raw_price = item.get("price_max")
    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=clean_text(item.get("title")) or context.query,
        price=to_price(raw_price, zero_is_unpriced=context.zero_price_is_unpriced),
        in_stock=item.get("available") is True,
        product_url=_product_url(item, context),
        image_url=_image(item, context),
        condition=_condition_from_tags(item.get("tags")),
        set_name=_set_from_body(item.get("body")),
    )


def normalize_shopify_suggest(payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    data = require_mapping(payload, context)
    products = dig(data, "resources", "results", "products")
    if products is None:
        if "resources" not in data:
            raise SourceMalformedResponse(
                context.source_name, "Missing resources container in suggest response"
            )
        return []
    if not isinstance(products, list):
        raise SourceMalformedResponse(context.source_name, "resources.results.products is not an array")
    return collect_offers(products, context, _offer)
