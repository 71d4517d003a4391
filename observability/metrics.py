"""
Prometheus metrics for the aggregation engine.

Tracks per-source outcomes and latency, transport tier attempts, circuit
breaker activity and end-to-end search latency.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    REGISTRY,
)

# Use the default registry
metrics_registry = REGISTRY

# Source Metrics
source_requests_total = Counter(
    "multisource_source_requests_total",
    "Source searches by outcome",
    ["source", "outcome"],
    registry=metrics_registry,
)

source_request_duration_seconds = Histogram(
    "multisource_source_request_duration_seconds",
    "Source search duration in seconds, across all tiers",
    ["source"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

transport_tier_attempts_total = Counter(
    "multisource_transport_tier_attempts_total",
    "Transport tier attempts by result (ok or failure kind)",
    ["source", "tier", "result"],
    registry=metrics_registry,
)

# Circuit Breaker Metrics
circuit_breaker_opened_total = Counter(
    "multisource_circuit_breaker_opened_total",
    "Times a source circuit transitioned to open",
    ["source"],
    registry=metrics_registry,
)

circuit_breaker_skips_total = Counter(
    "multisource_circuit_breaker_skips_total",
    "Searches that skipped a source because its circuit was open",
    ["source"],
    registry=metrics_registry,
)

# Search Metrics
search_duration_seconds = Histogram(
    "multisource_search_duration_seconds",
    "Aggregate search duration in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

search_offers_count = Histogram(
    "multisource_search_offers_count",
    "Number of offers returned by an aggregate search",
    buckets=[0, 1, 5, 10, 20, 50, 100, 200],
    registry=metrics_registry,
)

search_cache_hits_total = Counter(
    "multisource_search_cache_hits_total",
    "Aggregate searches answered from the query cache",
    registry=metrics_registry,
)

# Health Metrics
source_reachable = Gauge(
    "multisource_source_reachable",
    "1 when the last health probe reached the source, else 0",
    ["source"],
    registry=metrics_registry,
)
