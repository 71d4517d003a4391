"""Ephemeral per-query state gathered while sources answer."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from multisource.executors.base import SourceSearchResult
from multisource.models import (
    REACHABLE_OUTCOMES,
    AggregateResult,
    CanonicalOffer,
    Outcome,
    SourceStatusSnapshot,
)
from multisource.ranking import dedupe_within_source, rank_offers


@dataclass
class SearchSession:
    """Collects one query's per-source contributions, then becomes an AggregateResult.

    dispatch_order fixes the order offers are concatenated in before ranking,
    so ties in rank always resolve the same way.
    """

    query: str
    dispatch_order: Sequence[str]
    started_at: float = field(default_factory=time.monotonic)
    offers_by_source: Dict[str, List[CanonicalOffer]] = field(default_factory=dict)
    statuses: Dict[str, SourceStatusSnapshot] = field(default_factory=dict)

    def record(self, name: str, result: SourceSearchResult) -> None:
        # First contribution wins; late duplicates are ignored.
        if name in self.statuses:
            return
        self.offers_by_source[name] = list(result.offers)
        self.statuses[name] = result.status or SourceStatusSnapshot(
            source_name=name, outcome="unreachable"
        )

    def mark(self, name: str, outcome: Outcome, message: Optional[str] = None) -> None:
        if name in self.statuses:
            return
        latency_ms = None
        if outcome == "timed_out":
            latency_ms = int((time.monotonic() - self.started_at) * 1000)
        self.offers_by_source[name] = []
        self.statuses[name] = SourceStatusSnapshot(
            source_name=name,
            outcome=outcome,
            latency_ms=latency_ms,
            message=message,
        )

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def merged_offers(self) -> List[CanonicalOffer]:
        merged: List[CanonicalOffer] = []
        for name in self.dispatch_order:
            merged.extend(dedupe_within_source(self.offers_by_source.get(name, [])))
        return rank_offers(merged)

    def to_result(self) -> AggregateResult:
        ordered = [self.statuses[name] for name in self.dispatch_order if name in self.statuses]
        all_failed = not any(status.outcome in REACHABLE_OUTCOMES for status in ordered)
        return AggregateResult(
            query=self.query,
            offers=self.merged_offers(),
            per_source_outcome={status.source_name: status.outcome for status in ordered},
            source_statuses=ordered,
            elapsed_ms=self.elapsed_ms,
            all_sources_failed=all_failed,
        )
