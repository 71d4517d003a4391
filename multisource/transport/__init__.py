"""Transport tiers and the ordered chain that drives them."""

from multisource.transport.base import (
    ChainResult,
    RawResponse,
    TierFailure,
    TransportTier,
    UpstreamRequest,
)
from multisource.transport.chain import TierChain, attempt_tier
from multisource.transport.detection import detect_block
from multisource.transport.tiers import DirectTier, FallbackServiceTier, ProxyRelayTier

__all__ = [
    "ChainResult",
    "RawResponse",
    "TierFailure",
    "TransportTier",
    "UpstreamRequest",
    "TierChain",
    "attempt_tier",
    "detect_block",
    "DirectTier",
    "FallbackServiceTier",
    "ProxyRelayTier",
]
