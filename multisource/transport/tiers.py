"""Concrete transport tiers: proxy relay, direct upstream, fallback service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from multisource.constants import (
    DIRECT_TIER_TIMEOUT_SECONDS,
    FALLBACK_TIER_TIMEOUT_SECONDS,
    PROXY_TIER_TIMEOUT_SECONDS,
)
from multisource.transport.base import TransportTier, UpstreamRequest

if TYPE_CHECKING:
    from multisource.adapters.base import SourceAdapter


class ProxyRelayTier(TransportTier):
    """Edge relay that forwards the query to the store and returns its body unchanged."""

    name = "proxy"

    def __init__(self, base_url: str, timeout_seconds: float = PROXY_TIER_TIMEOUT_SECONDS):
        super().__init__(timeout_seconds)
        self.base_url = base_url.rstrip("/")

    def build_request(self, adapter: "SourceAdapter", query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="GET",
            url=f"{self.base_url}/{adapter.proxy_route}",
            params={"q": query},
            headers={"Accept": adapter.accept_header},
        )


class DirectTier(TransportTier):
    """Calls the store's own endpoint with the adapter-built request."""

    name = "direct"

    def __init__(self, timeout_seconds: float = DIRECT_TIER_TIMEOUT_SECONDS):
        super().__init__(timeout_seconds)

    def build_request(self, adapter: "SourceAdapter", query: str) -> UpstreamRequest:
        return adapter.build_request(query)


class FallbackServiceTier(TransportTier):
    """Local scraper service with one route per supported store.

    It reads ``{"cardName": query}`` and answers with already-flattened
    results rather than the store's own payload. Stores without a route
    are not served.
    """

    name = "fallback"
    response_shape = "card_results"

    def __init__(self, base_url: str, timeout_seconds: float = FALLBACK_TIER_TIMEOUT_SECONDS):
        super().__init__(timeout_seconds)
        self.base_url = base_url.rstrip("/")

    def supports(self, adapter: "SourceAdapter") -> bool:
        return adapter.fallback_route is not None

    def build_request(self, adapter: "SourceAdapter", query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="POST",
            url=f"{self.base_url}/api/{adapter.fallback_route}",
            json={"cardName": query},
            headers={"Accept": "application/json"},
        )
