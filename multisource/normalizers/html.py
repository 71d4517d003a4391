"""HTML search page normalizer.

Structured data wins: schema.org JSON-LD (``Product`` or an ``ItemList`` of
products) is read first. Pages without it fall back to the result list
rendered by the Advanced Woo Search plugin (``li.aws_result_item``).
"""

from __future__ import annotations

import json
from typing import Any, Iterator, List, Optional

from bs4 import BeautifulSoup

from multisource.exceptions import SourceMalformedResponse
from multisource.models import CanonicalOffer
from multisource.normalizers.base import ParseContext, clean_text, collect_offers, text_value
from multisource.utils.currency import to_price
from multisource.utils.url import absolute_url

IN_STOCK_PHRASES = ("en stock", "in stock", "disponible", "instock")
OUT_OF_STOCK_PHRASES = ("agotado", "sin stock", "out of stock", "outofstock", "no disponible")

_RESULT_CONTAINERS = ".aws_search_results, .aws_result_item, .aws_no_result, .aws-search-result"


def _stock_from_text(text: Optional[str]) -> bool:
    lowered = (text or "").lower()
    if any(phrase in lowered for phrase in OUT_OF_STOCK_PHRASES):
        return False
    return any(phrase in lowered for phrase in IN_STOCK_PHRASES)


def _iter_jsonld_products(soup: BeautifulSoup) -> Iterator[dict]:
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        nodes = data if isinstance(data, list) else [data]
        while nodes:
            node = nodes.pop(0)
            if not isinstance(node, dict):
                continue
            if isinstance(node.get("@graph"), list):
                nodes.extend(node["@graph"])
            node_type = node.get("@type")
            types = node_type if isinstance(node_type, list) else [node_type]
            if "Product" in types:
                yield node
            elif "ItemList" in types:
                for element in node.get("itemListElement") or []:
                    if isinstance(element, dict):
                        nodes.append(element.get("item") if isinstance(element.get("item"), dict) else element)


def _first_offer(product: dict) -> dict:
    offers = product.get("offers")
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if isinstance(offers, dict) and isinstance(offers.get("offers"), list) and offers["offers"]:
        # AggregateOffer wrapping concrete offers
        offers = offers["offers"][0]
    return offers if isinstance(offers, dict) else {}


def _schema_term(value: Any) -> Optional[str]:
    # https://schema.org/UsedCondition -> UsedCondition
    text = clean_text(value)
    return text.rstrip("/").rsplit("/", 1)[-1] if text else None


def _jsonld_image(product: dict) -> Optional[str]:
    image = product.get("image")
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url")
    return text_value(image)


def _offer_from_jsonld(product: dict, context: ParseContext) -> CanonicalOffer:
    offer = _first_offer(product)
    raw_price = offer.get("price")
    if raw_price in (None, ""):
        raw_price = offer.get("lowPrice")
    availability = str(offer.get("availability") or "")
    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=clean_text(product.get("name")) or context.query,
        price=to_price(
            raw_price,
            offer.get("priceCurrency"),
            zero_is_unpriced=context.zero_price_is_unpriced,
        ),
        in_stock="instock" in availability.lower().replace(" ", ""),
        product_url=absolute_url(context.source_url, product.get("url") or offer.get("url")),
        image_url=absolute_url(context.source_url, _jsonld_image(product)),
        condition=_schema_term(product.get("itemCondition") or offer.get("itemCondition")),
        set_name=clean_text(product.get("category")),
    )


def _offer_from_result_item(item, context: ParseContext) -> CanonicalOffer:
    title_node = item.select_one(".aws_result_title")
    link = item.select_one("a[href]")
    price_node = item.select_one(".aws_result_price")
    stock_node = item.select_one(".aws_result_stock")
    image = item.select_one(".aws_result_image img")

    if price_node is not None:
        # Sale prices render the old price inside <del>; the current one is in <ins>.
        current = price_node.find("ins") or price_node
        raw_price = current.get_text(" ", strip=True)
    else:
        raw_price = None

    title = None
    if title_node is not None:
        for extra in title_node.select(".aws_result_stock, .aws_result_price, .aws_result_sku"):
            extra.extract()
        title = clean_text(title_node.get_text(" ", strip=True))

    return CanonicalOffer(
        source_name=context.source_name,
        source_url=context.source_url,
        title=title or context.query,
        price=to_price(raw_price, zero_is_unpriced=context.zero_price_is_unpriced),
        in_stock=_stock_from_text(stock_node.get_text(" ", strip=True) if stock_node else None),
        product_url=absolute_url(context.source_url, link.get("href") if link else None),
        image_url=absolute_url(
            context.source_url, (image.get("src") or image.get("data-src")) if image else None
        ),
    )


def normalize_html_search(payload: Any, context: ParseContext) -> List[CanonicalOffer]:
    if not isinstance(payload, str):
        raise SourceMalformedResponse(
            context.source_name, f"Expected an HTML document, got {type(payload).__name__}"
        )
    soup = BeautifulSoup(payload, "html.parser")

    products = list(_iter_jsonld_products(soup))
    if products:
        return collect_offers(products, context, _offer_from_jsonld)

    if not soup.select(_RESULT_CONTAINERS):
        raise SourceMalformedResponse(
            context.source_name, "Page has neither structured data nor a search result list"
        )
    return collect_offers(soup.select("li.aws_result_item"), context, _offer_from_result_item)
