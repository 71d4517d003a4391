"""WooCommerce REST API adapter."""

from __future__ import annotations

from multisource.adapters.base import SourceAdapter
from multisource.transport.base import UpstreamRequest


class WooCommerceAdapter(SourceAdapter):
    shape = "woocommerce"
    expected_content = "json"
    # WooCommerce sends "" for unpriced products, so "0" is a real zero.
    zero_price_is_unpriced = False

    def build_request(self, query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="GET",
            url=f"{self.base_url}/wp-json/wc/v3/products",
            params={"search": query, "per_page": self.max_results},
            headers=self.request_headers(),
        )
