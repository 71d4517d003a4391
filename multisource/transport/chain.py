"""Ordered transport tier chain with per-tier timeouts."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple, Union

import httpx

from multisource.transport.base import (
    ChainResult,
    RawResponse,
    TierFailure,
    TransportTier,
)
from multisource.transport.detection import detect_block
from multisource.utils.security import redact_secrets_from_text
from observability import get_logger
from observability.metrics import transport_tier_attempts_total

if TYPE_CHECKING:
    from multisource.adapters.base import SourceAdapter

logger = get_logger(__name__)


def _decode_payload(response: httpx.Response, expected_content: str) -> Tuple[Optional[Any], str]:
    """Return (payload, error). Payload is None when the body is not usable."""
    content_type = response.headers.get("content-type", "").lower()
    if expected_content == "json":
        if "json" not in content_type:
            return None, f"Expected JSON, got {content_type or 'no content type'}"
        try:
            return response.json(), ""
        except ValueError as e:
            return None, f"Unparseable JSON body: {e}"
    if "html" not in content_type:
        return None, f"Expected HTML, got {content_type or 'no content type'}"
    text = response.text
    if not text.strip():
        return None, "Empty HTML body"
    return text, ""


async def attempt_tier(
    client: httpx.AsyncClient,
    tier: TransportTier,
    adapter: "SourceAdapter",
    query: str,
    timeout: float,
) -> Union[RawResponse, TierFailure]:
    """Run one tier under its timeout and classify what came back."""
    try:
        response = await asyncio.wait_for(
            tier.send(client, adapter, query, timeout=timeout), timeout=timeout
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        return TierFailure(tier.name, "timeout", f"No response within {timeout:.2f}s")
    except httpx.HTTPError as e:
        message = redact_secrets_from_text(f"{type(e).__name__}: {e}")
        return TierFailure(tier.name, "unreachable", message[:200])

    expected_content = tier.expected_content(adapter)
    block_reason = detect_block(response, expected_content)
    if block_reason:
        return TierFailure(tier.name, "blocked", block_reason, response.status_code)
    if response.status_code == 429:
        return TierFailure(tier.name, "rate_limited", "Too Many Requests", 429)
    if not response.is_success:
        return TierFailure(
            tier.name, "http_error", f"HTTP {response.status_code}", response.status_code
        )

    payload, error = _decode_payload(response, expected_content)
    if payload is None:
        return TierFailure(tier.name, "invalid_response", error, response.status_code)

    return RawResponse(
        tier=tier.name,
        status_code=response.status_code,
        final_url=str(response.url),
        content_type=response.headers.get("content-type", ""),
        payload=payload,
        shape=tier.response_shape,
    )


class TierChain:
    """Tries a source's tiers strictly in order; first valid response wins."""

    def __init__(self, tiers: Sequence[TransportTier]):
        self.tiers = tuple(tiers)

    async def run(
        self,
        client: httpx.AsyncClient,
        adapter: "SourceAdapter",
        query: str,
        *,
        deadline: Optional[float] = None,
    ) -> ChainResult:
        loop = asyncio.get_running_loop()
        result = ChainResult()

        for tier in self.tiers:
            if not tier.supports(adapter):
                continue
            timeout = tier.timeout_seconds
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    result.failures.append(
                        TierFailure(tier.name, "timeout", "Source deadline exhausted")
                    )
                    break
                timeout = min(timeout, remaining)

            result.attempts.append(tier.name)
            outcome = await attempt_tier(client, tier, adapter, query, timeout)

            if isinstance(outcome, RawResponse):
                transport_tier_attempts_total.labels(
                    source=adapter.name, tier=tier.name, result="ok"
                ).inc()
                result.response = outcome
                return result

            transport_tier_attempts_total.labels(
                source=adapter.name, tier=tier.name, result=outcome.kind
            ).inc()
            logger.info(
                f"Tier {tier.name} failed for {adapter.name}",
                extra={
                    "event": "tier_failure",
                    "source": adapter.name,
                    "tier": tier.name,
                    "kind": outcome.kind,
                    "detail": outcome.message,
                },
            )
            result.failures.append(outcome)
            if outcome.is_terminal:
                break

        return result
