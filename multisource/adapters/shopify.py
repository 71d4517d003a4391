"""Shopify storefront adapter (predictive search endpoint)."""

from __future__ import annotations

from multisource.adapters.base import SourceAdapter
from multisource.transport.base import UpstreamRequest

SUGGEST_LIMIT = 10


class ShopifySuggestAdapter(SourceAdapter):
    shape = "shopify_suggest"
    expected_content = "json"
    # Shopify reports 0.00 for products with no price set
    zero_price_is_unpriced = True

    def build_request(self, query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="GET",
            url=f"{self.base_url}/search/suggest.json",
            params={
                "q": query,
                "resources[type]": "product",
                "resources[limit]": min(SUGGEST_LIMIT, self.max_results),
            },
            headers=self.request_headers(),
        )
