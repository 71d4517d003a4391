"""
Observability infrastructure for the aggregation engine.

Provides:
- Structured logging with correlation IDs
- Prometheus metrics
"""

from .logging import get_logger, correlation_id_context, get_correlation_id, setup_logging
from .metrics import (
    metrics_registry,
    source_requests_total,
    source_request_duration_seconds,
    transport_tier_attempts_total,
    circuit_breaker_opened_total,
    circuit_breaker_skips_total,
    search_duration_seconds,
    search_offers_count,
    search_cache_hits_total,
    source_reachable,
)

__all__ = [
    "get_logger",
    "correlation_id_context",
    "get_correlation_id",
    "setup_logging",
    "metrics_registry",
    "source_requests_total",
    "source_request_duration_seconds",
    "transport_tier_attempts_total",
    "circuit_breaker_opened_total",
    "circuit_breaker_skips_total",
    "search_duration_seconds",
    "search_offers_count",
    "search_cache_hits_total",
    "source_reachable",
]
