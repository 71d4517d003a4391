"""Aggregate search observability.

Structured logging and Prometheus observations for the search pipeline.
Tracked per search:
- source success rate: share of attempted sources that were reachable
- outcome mix: how many sources failed, were skipped or timed out
- search latency: end-to-end and per source
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from multisource.models import REACHABLE_OUTCOMES, AggregateResult, SourceStatusSnapshot
from observability.metrics import search_duration_seconds, search_offers_count

logger = logging.getLogger("multisource.metrics")


@dataclass
class SearchMetrics:
    """Aggregated metrics for a single search operation."""
    query: str = ""
    total_offers: int = 0
    sources_called: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    sources_skipped: int = 0
    sources_timed_out: int = 0
    total_latency_ms: float = 0.0
    cached: bool = False
    source_details: List[dict] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: AggregateResult) -> "SearchMetrics":
        metrics = cls(
            query=result.query,
            total_offers=len(result.offers),
            total_latency_ms=float(result.elapsed_ms),
            cached=result.cached,
        )
        for status in result.source_statuses:
            metrics.source_details.append({
                "id": status.source_name,
                "outcome": status.outcome,
                "offers": status.offer_count,
                "tier": status.tier,
                "latency_ms": status.latency_ms,
            })
            if status.outcome == "circuit_open":
                metrics.sources_skipped += 1
                continue
            metrics.sources_called += 1
            if status.outcome in REACHABLE_OUTCOMES:
                metrics.sources_succeeded += 1
            else:
                metrics.sources_failed += 1
                if status.outcome == "timed_out":
                    metrics.sources_timed_out += 1
        return metrics

    def success_rate(self) -> float:
        """Calculate source success rate."""
        if self.sources_called == 0:
            return 0.0
        return self.sources_succeeded / self.sources_called

    def has_results(self) -> bool:
        return self.total_offers > 0


def record_search(result: AggregateResult) -> SearchMetrics:
    """Observe and log a finished search in structured format."""
    m = SearchMetrics.from_result(result)

    if not m.cached:
        search_duration_seconds.observe(m.total_latency_ms / 1000)
    search_offers_count.observe(m.total_offers)

    log_data = {
        "event": "search_complete",
        "query_length": len(m.query),
        "cached": m.cached,
        "offers": m.total_offers,
        "sources": {
            "called": m.sources_called,
            "succeeded": m.sources_succeeded,
            "failed": m.sources_failed,
            "skipped": m.sources_skipped,
            "timed_out": m.sources_timed_out,
            "success_rate": round(m.success_rate(), 2),
            "details": m.source_details,
        },
        "latency_ms": round(m.total_latency_ms, 1),
        "success": m.has_results(),
    }

    if m.sources_called and m.sources_failed == m.sources_called:
        logger.error("Search failed - all sources failed", extra=log_data)
    elif m.sources_failed > 0:
        logger.warning("Search completed with source failures", extra=log_data)
    elif not m.has_results():
        logger.warning("Search completed but no offers", extra=log_data)
    else:
        logger.info("Search completed successfully", extra=log_data)
    return m


def log_search_start(query: str, sources: List[str], skipped: Optional[List[str]] = None):
    """Log search operation start."""
    logger.info(
        "Search started",
        extra={
            "event": "search_start",
            "query_length": len(query),
            "sources_requested": sources,
            "sources_skipped": skipped or [],
        }
    )


def log_source_result(status: SourceStatusSnapshot):
    """Log individual source result."""
    logger.info(
        f"Source {status.source_name} completed",
        extra={
            "event": "source_complete",
            "source": status.source_name,
            "outcome": status.outcome,
            "offer_count": status.offer_count,
            "tier": status.tier,
            "latency_ms": status.latency_ms,
        }
    )
