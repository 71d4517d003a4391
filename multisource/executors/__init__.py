"""Source executors."""

from multisource.executors.base import (
    SourceSearchResult,
    chain_failure_error,
    classify_chain_failures,
    search_source,
)

__all__ = [
    "SourceSearchResult",
    "chain_failure_error",
    "classify_chain_failures",
    "search_source",
]
