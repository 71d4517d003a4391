"""Shared constants for the aggregation engine."""

# Placeholder for descriptors a source does not provide
NOT_AVAILABLE = "N/A"

# All configured stores quote Chilean pesos
DEFAULT_CURRENCY = "CLP"

# Circuit breaker: open after this many failures inside the rolling window
BREAKER_FAILURE_THRESHOLD = 3
BREAKER_WINDOW_SECONDS = 5 * 60

# Whole-query budget, independent of any single source
DEFAULT_QUERY_DEADLINE_SECONDS = 10.0

# Per-tier budgets: edge proxy is expected to be fast, fallbacks slow
PROXY_TIER_TIMEOUT_SECONDS = 3.0
DIRECT_TIER_TIMEOUT_SECONDS = 5.0
FALLBACK_TIER_TIMEOUT_SECONDS = 8.0

DEFAULT_MAX_RESULTS_PER_SOURCE = 20

HEALTH_PROBE_QUERY = "test"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "es-CL,es;q=0.9,en;q=0.8",
}
