"""Catlotus card search adapter."""

from __future__ import annotations

from multisource.adapters.base import SourceAdapter
from multisource.transport.base import UpstreamRequest


class CatlotusAdapter(SourceAdapter):
    shape = "catlotus"
    expected_content = "json"
    zero_price_is_unpriced = True

    def build_request(self, query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="POST",
            url=f"{self.base_url}/api/search/card",
            json={"search": query, "set": "", "foil": "", "page": 1},
            headers=self.request_headers({"Content-Type": "application/json"}),
        )
