"""
Source reachability monitoring.

Probes every configured source with its fixed probe query through the same
adapter and tier chain a live search uses. Probes are independent of live
traffic: they never read or update the circuit breaker registry.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

import httpx

from multisource.constants import DEFAULT_QUERY_DEADLINE_SECONDS
from multisource.executors.base import search_source
from multisource.models import REACHABLE_OUTCOMES, HealthReport, Outcome
from observability import get_logger
from observability.metrics import source_reachable

if TYPE_CHECKING:
    from multisource.catalog import SourceConfig

logger = get_logger(__name__)


class HealthMonitor:
    """Periodic or on-demand reachability checks across all sources."""

    def __init__(
        self,
        sources: Sequence["SourceConfig"],
        *,
        min_reachable: int = 1,
        probe_timeout: float = DEFAULT_QUERY_DEADLINE_SECONDS,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.sources = list(sources)
        self.min_reachable = min_reachable
        self.probe_timeout = probe_timeout
        self.http_transport = http_transport
        self.last_report: Optional[HealthReport] = None
        self._task: Optional[asyncio.Task] = None

    async def check(self) -> HealthReport:
        """
        Probe all sources concurrently.

        Returns:
            HealthReport with per-source reachability and the overall verdict
        """
        loop = asyncio.get_running_loop()
        deadline_at = loop.time() + self.probe_timeout
        details: Dict[str, Outcome] = {}

        async with httpx.AsyncClient(transport=self.http_transport, follow_redirects=True) as client:
            tasks = {
                asyncio.create_task(
                    search_source(
                        source, source.adapter.probe_query, client=client, deadline=deadline_at
                    )
                ): source.name
                for source in self.sources
            }
            if tasks:
                done, pending = await asyncio.wait(tasks.keys(), timeout=self.probe_timeout)
                for task in pending:
                    task.cancel()
                if pending:
                    await asyncio.gather(*pending, return_exceptions=True)
            else:
                done = set()

        for task, name in tasks.items():
            if task not in done or task.cancelled():
                details[name] = "timed_out"
            elif task.exception() is not None:
                logger.error(
                    f"Health probe for {name} raised",
                    exc_info=task.exception(),
                    extra={"event": "health_probe_error", "source": name},
                )
                details[name] = "unreachable"
            else:
                details[name] = task.result().outcome

        sources = {name: outcome in REACHABLE_OUTCOMES for name, outcome in details.items()}
        for name, reachable in sources.items():
            source_reachable.labels(source=name).set(1 if reachable else 0)
        reachable_count = sum(1 for reachable in sources.values() if reachable)

        report = HealthReport(
            sources=sources,
            overall_healthy=reachable_count >= self.min_reachable,
            reachable_count=reachable_count,
            min_reachable=self.min_reachable,
            details=details,
        )
        self.last_report = report

        log = logger.info if report.overall_healthy else logger.warning
        log(
            "Health check completed",
            extra={
                "event": "health_check",
                "reachable": reachable_count,
                "total": len(sources),
                "min_reachable": self.min_reachable,
                "unreachable_sources": [name for name, ok in sources.items() if not ok],
            },
        )
        return report

    async def _run_forever(self, interval_seconds: float) -> None:
        while True:
            try:
                await self.check()
            except Exception:
                logger.error("Scheduled health check failed", exc_info=True)
            await asyncio.sleep(interval_seconds)

    def start(self, interval_seconds: float) -> asyncio.Task:
        """Start background probing on the running loop; idempotent."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self._run_forever(interval_seconds), name="multisource:health"
            )
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def unreachable_sources(self) -> List[str]:
        if self.last_report is None:
            return []
        return [name for name, ok in self.last_report.sources.items() if not ok]
