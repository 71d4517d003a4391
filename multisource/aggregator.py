"""Concurrent fan-out over every configured source."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

import httpx

from multisource.breaker import CircuitBreakerRegistry
from multisource.cache import QueryCache
from multisource.constants import DEFAULT_QUERY_DEADLINE_SECONDS
from multisource.exceptions import ConfigurationError, InvalidQueryError
from multisource.executors.base import search_source
from multisource.metrics import log_search_start, log_source_result, record_search
from multisource.models import REACHABLE_OUTCOMES, AggregateResult, CanonicalOffer
from multisource.session import SearchSession
from multisource.settings import Settings
from observability import correlation_id_context, get_logger
from observability.metrics import search_cache_hits_total

if TYPE_CHECKING:
    from multisource.catalog import SourceConfig

logger = get_logger(__name__)


def validate_query(query: str) -> str:
    if not isinstance(query, str):
        raise InvalidQueryError("Query must be a string", detail={"type": type(query).__name__})
    cleaned = " ".join(query.split())
    if not cleaned:
        raise InvalidQueryError("Query must not be blank")
    return cleaned


class Aggregator:
    """Searches all eligible sources at once under one global deadline.

    The breaker registry and optional cache are owned by the caller and
    injected here, so several aggregators (or a health monitor) can share
    or isolate them as needed.
    """

    def __init__(
        self,
        sources: Sequence["SourceConfig"],
        breaker: CircuitBreakerRegistry,
        *,
        deadline_seconds: float = DEFAULT_QUERY_DEADLINE_SECONDS,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[QueryCache] = None,
    ):
        names = [source.name for source in sources]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError("Duplicate source names", detail={"sources": duplicates})
        if deadline_seconds <= 0:
            raise ConfigurationError("deadline_seconds must be positive")
        self.sources = list(sources)
        self.breaker = breaker
        self.deadline_seconds = deadline_seconds
        self.http_transport = http_transport
        self.cache = cache
        self._by_name: Dict[str, "SourceConfig"] = {source.name: source for source in sources}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        sources: Sequence["SourceConfig"],
        *,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "Aggregator":
        """Wire breaker, deadline and (when enabled) the query cache from settings."""
        breaker = CircuitBreakerRegistry(
            threshold=settings.breaker_threshold,
            window_seconds=settings.breaker_window_seconds,
        )
        cache = QueryCache(ttl_seconds=settings.cache_ttl_seconds) if settings.cache_enabled else None
        return cls(
            sources,
            breaker,
            deadline_seconds=settings.query_deadline_seconds,
            http_transport=http_transport,
            cache=cache,
        )

    @property
    def source_names(self) -> List[str]:
        return [source.name for source in self.sources]

    def _client(self) -> httpx.AsyncClient:
        # Redirects are followed so a captcha hop shows up in the final URL.
        return httpx.AsyncClient(transport=self.http_transport, follow_redirects=True)

    async def search(self, query: str, deadline: Optional[float] = None) -> AggregateResult:
        query = validate_query(query)
        budget = self.deadline_seconds if deadline is None else deadline
        if budget <= 0:
            raise InvalidQueryError("Deadline must be positive", detail={"deadline": budget})

        if self.cache is not None:
            cached = self.cache.get(query)
            if cached is not None:
                search_cache_hits_total.inc()
                record_search(cached)
                return cached

        with correlation_id_context():
            eligible, skipped = self.breaker.partition(self.source_names)
            session = SearchSession(query=query, dispatch_order=self.source_names)
            for name in skipped:
                session.mark(name, "circuit_open", "Circuit open; source skipped")

            log_search_start(query, eligible, skipped)
            if eligible:
                await self._dispatch(session, [self._by_name[name] for name in eligible], budget)
                self._update_breaker(session, eligible)

            result = session.to_result()
            record_search(result)

        if self.cache is not None:
            self.cache.put(query, result)
        return result

    async def search_all(self, query: str, deadline: Optional[float] = None) -> List[CanonicalOffer]:
        result = await self.search(query, deadline=deadline)
        return result.offers

    async def _dispatch(
        self, session: SearchSession, sources: List["SourceConfig"], budget: float
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline_at = loop.time() + budget

        async with self._client() as client:
            tasks: Dict[asyncio.Task, str] = {}
            for source in sources:
                task = asyncio.create_task(
                    search_source(source, session.query, client=client, deadline=deadline_at),
                    name=f"multisource:{source.name}",
                )
                tasks[task] = source.name

            done, pending = await asyncio.wait(tasks.keys(), timeout=budget)
            for task in pending:
                task.cancel()
            if pending:
                # Let cancelled requests unwind so their connections close.
                await asyncio.gather(*pending, return_exceptions=True)

        for task, name in tasks.items():
            if task not in done or task.cancelled():
                logger.warning(
                    f"Source {name} missed the search deadline",
                    extra={"event": "source_deadline", "source": name, "deadline_s": budget},
                )
                session.mark(name, "timed_out", f"No answer within {budget:.2f}s deadline")
                continue
            error = task.exception()
            if error is not None:
                logger.error(
                    f"Source {name} raised unexpectedly",
                    exc_info=error,
                    extra={"event": "source_crashed", "source": name},
                )
                session.mark(name, "unreachable", f"Unexpected error: {type(error).__name__}")
                continue
            result = task.result()
            session.record(name, result)
            log_source_result(session.statuses[name])

    def _update_breaker(self, session: SearchSession, attempted: List[str]) -> None:
        # Exactly one breaker update per attempted source per query.
        for name in attempted:
            status = session.statuses.get(name)
            if status is not None and status.outcome in REACHABLE_OUTCOMES:
                self.breaker.record_success(name)
            else:
                self.breaker.record_failure(name)
