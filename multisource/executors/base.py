"""Source executor with status instrumentation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

import httpx

from multisource.exceptions import (
    SourceBlocked,
    SourceError,
    SourceMalformedResponse,
    SourceRateLimited,
    SourceTimeout,
    SourceUnreachable,
)
from multisource.models import CanonicalOffer, Outcome, SourceStatusSnapshot
from multisource.transport.base import TierFailure
from multisource.transport.chain import TierChain
from multisource.utils.security import redact_secrets_from_text
from observability import get_logger
from observability.metrics import source_request_duration_seconds, source_requests_total

if TYPE_CHECKING:
    from multisource.catalog import SourceConfig

logger = get_logger(__name__)

# When every tier failed, the most specific failure decides the outcome.
_FAILURE_PRECEDENCE = (
    ("blocked", "blocked"),
    ("rate_limited", "rate_limited"),
)


@dataclass
class SourceSearchResult:
    offers: List[CanonicalOffer] = field(default_factory=list)
    status: Optional[SourceStatusSnapshot] = None

    @property
    def outcome(self) -> Outcome:
        return self.status.outcome if self.status else "unreachable"


def classify_chain_failures(failures: Sequence[TierFailure]) -> Outcome:
    """Collapse all tier failures of one query into a single outcome."""
    kinds = {failure.kind for failure in failures}
    for kind, outcome in _FAILURE_PRECEDENCE:
        if kind in kinds:
            return outcome
    if kinds and kinds <= {"timeout"}:
        return "timed_out"
    if kinds & {"unreachable", "http_error", "timeout"}:
        return "unreachable"
    if "invalid_response" in kinds:
        return "malformed_response"
    return "unreachable"


def _failure_message(failures: Sequence[TierFailure]) -> str:
    return "; ".join(f"{f.tier}: {f.kind} ({f.message})" for f in failures)[:300]


_ERROR_BY_OUTCOME = {
    "blocked": SourceBlocked,
    "rate_limited": SourceRateLimited,
    "timed_out": SourceTimeout,
    "unreachable": SourceUnreachable,
    "malformed_response": SourceMalformedResponse,
}


def chain_failure_error(source_name: str, failures: Sequence[TierFailure]) -> SourceError:
    """The SourceError matching what every tier of one query ran into."""
    error_cls = _ERROR_BY_OUTCOME[classify_chain_failures(failures)]
    return error_cls(
        source_name,
        _failure_message(failures) or "No transport tier serves this source",
        detail={"tiers": [failure.tier for failure in failures]},
    )


async def search_source(
    source: "SourceConfig",
    query: str,
    *,
    client: httpx.AsyncClient,
    deadline: Optional[float] = None,
) -> SourceSearchResult:
    """Search one source through its tier chain.

    Never raises for source failures: a failed tier chain or a parse error
    surfaces as a SourceError and is folded into the returned status here.
    Cancellation propagates so a global deadline can abort it.
    """
    started = time.monotonic()
    chain = TierChain(source.tiers)
    adapter = source.adapter

    def _finish(
        outcome: Outcome,
        offers: List[CanonicalOffer],
        *,
        tier: Optional[str] = None,
        attempts: Optional[List[str]] = None,
        message: Optional[str] = None,
    ) -> SourceSearchResult:
        elapsed = time.monotonic() - started
        source_requests_total.labels(source=source.name, outcome=outcome).inc()
        source_request_duration_seconds.labels(source=source.name).observe(elapsed)
        status = SourceStatusSnapshot(
            source_name=source.name,
            outcome=outcome,
            offer_count=len(offers),
            latency_ms=int(elapsed * 1000),
            tier=tier,
            attempts=attempts or [],
            message=redact_secrets_from_text(message) if message else None,
        )
        return SourceSearchResult(offers=offers, status=status)

    chain_result = await chain.run(client, adapter, query, deadline=deadline)
    response = chain_result.response
    tier = response.tier if response else None
    try:
        if response is None:
            raise chain_failure_error(source.name, chain_result.failures)
        offers = adapter.parse(response.payload, query, shape=response.shape)
    except SourceError as e:
        logger.warning(
            f"Source {source.name} failed: {e.outcome}",
            extra={
                "event": "source_failed",
                "source": source.name,
                "outcome": e.outcome,
                "tier": tier,
                "attempts": chain_result.attempts,
                "detail": e.message,
            },
        )
        return _finish(
            e.outcome, [], tier=tier, attempts=chain_result.attempts, message=e.message
        )
    except Exception as e:
        logger.exception(
            f"Parser for {source.name} crashed",
            extra={"event": "source_parser_error", "source": source.name, "tier": tier},
        )
        return _finish(
            "malformed_response",
            [],
            tier=tier,
            attempts=chain_result.attempts,
            message=f"Parser error: {type(e).__name__}",
        )

    outcome: Outcome = "success" if offers else "empty"
    return _finish(outcome, offers, tier=tier, attempts=chain_result.attempts)
