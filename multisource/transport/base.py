"""Transport tier primitives shared by every delivery mechanism."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Literal, Optional

import httpx

if TYPE_CHECKING:
    from multisource.adapters.base import SourceAdapter

FailureKind = Literal[
    "timeout",
    "unreachable",
    "http_error",
    "invalid_response",
    "blocked",
    "rate_limited",
]

# Failures that make any further tier attempt pointless for this query
TERMINAL_FAILURES = frozenset({"blocked", "rate_limited"})


@dataclass(frozen=True)
class UpstreamRequest:
    """Everything needed to issue one HTTP call."""

    method: str
    url: str
    params: Dict[str, Any] = field(default_factory=dict)
    json: Optional[Any] = None
    data: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawResponse:
    """A structurally valid response accepted by the tier chain."""

    tier: str
    status_code: int
    final_url: str
    content_type: str
    payload: Any
    # Set when the tier answers in its own shape instead of the store's
    shape: Optional[str] = None


@dataclass(frozen=True)
class TierFailure:
    tier: str
    kind: FailureKind
    message: str
    status_code: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_FAILURES


@dataclass
class ChainResult:
    """What a full pass over a source's tiers produced."""

    response: Optional[RawResponse] = None
    failures: List[TierFailure] = field(default_factory=list)
    attempts: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.response is not None


class TransportTier(ABC):
    """One concrete way of reaching a source."""

    name: str = "tier"
    response_shape: ClassVar[Optional[str]] = None

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds

    def supports(self, adapter: "SourceAdapter") -> bool:
        return True

    def expected_content(self, adapter: "SourceAdapter") -> str:
        return "json" if self.response_shape else adapter.expected_content

    @abstractmethod
    def build_request(self, adapter: "SourceAdapter", query: str) -> UpstreamRequest:
        raise NotImplementedError

    async def send(
        self,
        client: httpx.AsyncClient,
        adapter: "SourceAdapter",
        query: str,
        *,
        timeout: float,
    ) -> httpx.Response:
        request = self.build_request(adapter, query)
        return await client.request(
            request.method,
            request.url,
            params=request.params or None,
            json=request.json,
            data=request.data,
            headers=request.headers or None,
            timeout=timeout,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(timeout_seconds={self.timeout_seconds})"
