"""TCGMatch marketplace adapter."""

from __future__ import annotations

from multisource.adapters.base import SourceAdapter
from multisource.transport.base import UpstreamRequest

TCGMATCH_API_URL = "https://api.tcgmatch.cl/products/search"


class TCGMatchAdapter(SourceAdapter):
    shape = "tcgmatch"
    expected_content = "json"
    zero_price_is_unpriced = True

    def __init__(self, name: str, base_url: str, *, api_url: str = TCGMATCH_API_URL, tcg: str = "magic", **kwargs):
        super().__init__(name, base_url, **kwargs)
        self.api_url = api_url
        self.tcg = tcg

    def build_request(self, query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="GET",
            url=self.api_url,
            params={"palabra": query, "tcg": self.tcg},
            headers=self.request_headers(),
        )
