"""Base source adapter."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional

from multisource.constants import (
    DEFAULT_HEADERS,
    DEFAULT_MAX_RESULTS_PER_SOURCE,
    HEALTH_PROBE_QUERY,
)
from multisource.models import CanonicalOffer
from multisource.normalizers import ParseContext, normalize_payload
from multisource.transport.base import UpstreamRequest

ACCEPT_BY_CONTENT = {
    "json": "application/json",
    "html": "text/html,application/xhtml+xml",
}


class SourceAdapter:
    """Knows how to ask one retailer for a query and how to read its answer.

    Subclasses pick the response shape (which normalizer reads the payload),
    the content type a valid answer must carry and how "0" prices are read.
    """

    shape: ClassVar[str] = ""
    expected_content: ClassVar[str] = "json"
    zero_price_is_unpriced: ClassVar[bool] = False

    def __init__(
        self,
        name: str,
        base_url: str,
        *,
        proxy_route: Optional[str] = None,
        fallback_route: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS_PER_SOURCE,
        probe_query: str = HEALTH_PROBE_QUERY,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.proxy_route = proxy_route or name
        # Route on the fallback service; None when it does not serve this store
        self.fallback_route = fallback_route
        self.max_results = max_results
        self.probe_query = probe_query

    @property
    def accept_header(self) -> str:
        return ACCEPT_BY_CONTENT.get(self.expected_content, "*/*")

    def request_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {**DEFAULT_HEADERS, "Accept": self.accept_header}
        if extra:
            headers.update(extra)
        return headers

    def build_request(self, query: str) -> UpstreamRequest:
        raise NotImplementedError

    def parse(self, payload: Any, query: str, shape: Optional[str] = None) -> List[CanonicalOffer]:
        """Normalize a payload; shape overrides the store's own response shape."""
        context = ParseContext(
            source_name=self.name,
            source_url=self.base_url,
            query=query,
            max_results=self.max_results,
            zero_price_is_unpriced=self.zero_price_is_unpriced,
        )
        return normalize_payload(shape or self.shape, payload, context)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, base_url={self.base_url!r})"
