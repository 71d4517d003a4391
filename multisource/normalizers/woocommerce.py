"""WooCommerce REST (wp-json/wc/v3/products) normalizer."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from multisource.models import CanonicalOffer
from multisource.normalizers.base import (
    ParseContext,
    clean_text,
    collect_offers,
    positive_quantity,
    require_list,
)
from multisource.utils.currency import to_price
from multisource.utils.url import absolute_url

_SET_ATTRIBUTES = ("set", "edicion", "edición", "expansion", "expansión")
_CONDITION_ATTRIBUTES = ("condition", "condicion", "condición", "estado")


def _attribute(item: dict, names: Iterable[str]) -> Optional[str]:
    attributes = item.get("attributes")
    if not isinstance(attributes, list):
        return None
    for attribute in attributes:
        if not isinstance(attribute, dict):
            continue
        name = str(attribute.get("name") or "").strip().lower()
        if name not in names:
            continue
        options = attribute.get("options")
        if isinstance(options, list) and options:
            return clean_text(options[0])
        return clean_text(attribute.get("option"))
    return None


def _set_name(item: dict) -> Optional[str]:
    named = _attribute(item, _SET_ATTRIBUTES)
    if named:
        return named
    categories = item.get("categories")
    if isinstance(categories, list) and categories and isinstance(categories[0], dict):
        return clean_text(categories[0].get("name"))
    return None


def _in_stock(item: dict) -> bool:
    status = str(item.get("stock_status") or "").strip().lower()
    if status:
        return status == "instock"
    return positive_quantity(item.get("stock_quantity"))


def _image(item: dict, context: ParseContext) -> Optional[str]:
    images = item.get("images")
    if isinstance(images, list) and images and isinstance(images[0], dict):
        return absolute_url(context.source_url, images[0].get("src"))
    return None


def _offer(item: Any, context: ParseContext) -> Optional[CanonicalOffer]:
    if not isinstance(item, dict):
        return None
    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=clean_text(item.get("name")) or context.query,
        price=to_price(item.get("price"), zero_is_unpriced=context.zero_price_is_unpriced),
        in_stock=_in_stock(item),
        product_url=absolute_url(context.source_url, item.get("permalink")),
        image_url=_image(item, context),
        condition=_attribute(item, _CONDITION_ATTRIBUTES),
        set_name=_set_name(item),
    )


def normalize_woocommerce_products(payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    products = require_list(payload, context, "product list")
    return collect_offers(products, context, _offer)
