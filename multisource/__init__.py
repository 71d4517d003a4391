"""Multi-source offer aggregation engine."""

from multisource.aggregator import Aggregator
from multisource.breaker import CircuitBreakerRegistry
from multisource.cache import QueryCache
from multisource.catalog import SourceConfig, build_default_sources, describe_sources
from multisource.exceptions import (
    ConfigurationError,
    InvalidQueryError,
    MultiSourceError,
    SourceError,
)
from multisource.health import HealthMonitor
from multisource.models import (
    UNPRICED,
    AggregateResult,
    CanonicalOffer,
    HealthReport,
    Money,
    SourceStatusSnapshot,
    Unpriced,
)
from multisource.ranking import rank_offers
from multisource.settings import Settings, load_settings

__all__ = [
    "Aggregator",
    "CircuitBreakerRegistry",
    "QueryCache",
    "SourceConfig",
    "build_default_sources",
    "describe_sources",
    "ConfigurationError",
    "InvalidQueryError",
    "MultiSourceError",
    "SourceError",
    "HealthMonitor",
    "UNPRICED",
    "AggregateResult",
    "CanonicalOffer",
    "HealthReport",
    "Money",
    "SourceStatusSnapshot",
    "Unpriced",
    "rank_offers",
    "Settings",
    "load_settings",
]
