import os
import sys
from typing import Callable, Dict, Optional, Sequence

import httpx
import pytest

# Add project root to path so tests import the packages without installing
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from multisource.adapters import ShopifySuggestAdapter, SourceAdapter
from multisource.catalog import SourceConfig
from multisource.transport import DirectTier, FallbackServiceTier, ProxyRelayTier

PROXY_BASE = "https://relay.test"
FALLBACK_BASE = "https://fallback.test"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CallCounter:
    """Counts requests per host so tests can assert zero transport calls."""

    def __init__(self):
        self.calls: Dict[str, int] = {}
        self.requests = []

    def record(self, request: httpx.Request) -> None:
        self.requests.append(request)
        host = request.url.host
        self.calls[host] = self.calls.get(host, 0) + 1

    def for_host(self, host: str) -> int:
        return self.calls.get(host, 0)


def shopify_payload(*products: dict) -> dict:
    return {"resources": {"results": {"products": list(products)}}}


def shopify_product(title: str, price: str, available: bool = True, handle: Optional[str] = None) -> dict:
    handle = handle or title.lower().replace(" ", "-")
    return {
        "title": title,
        "handle": handle,
        "url": f"/products/{handle}?_pos=1&_sid=abc&_ss=r",
        "price": price,
        "available": available,
        "image": f"//cdn.shopify.test/{handle}.jpg",
        "tags": [],
        "body": "",
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counter():
    return CallCounter()


@pytest.fixture
def make_source() -> Callable[..., SourceConfig]:
    def _make(
        name: str,
        adapter_cls=ShopifySuggestAdapter,
        tiers: Optional[Sequence] = None,
        base_url: Optional[str] = None,
        **adapter_kwargs,
    ) -> SourceConfig:
        base_url = base_url or f"https://{name}.test"
        adapter: SourceAdapter = adapter_cls(name, base_url, **adapter_kwargs)
        return SourceConfig(
            name=name,
            display_name=name.title(),
            base_url=base_url,
            adapter=adapter,
            tiers=tuple(tiers) if tiers else (DirectTier(timeout_seconds=2.0),),
        )

    return _make


@pytest.fixture
def three_tiers():
    return (
        ProxyRelayTier(PROXY_BASE, timeout_seconds=1.0),
        DirectTier(timeout_seconds=1.0),
        FallbackServiceTier(FALLBACK_BASE, timeout_seconds=1.0),
    )
