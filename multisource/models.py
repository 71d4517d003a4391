"""Typed models for the multi-source aggregation pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from multisource.constants import DEFAULT_CURRENCY, NOT_AVAILABLE

Outcome = Literal[
    "success",
    "empty",
    "blocked",
    "timed_out",
    "circuit_open",
    "malformed_response",
    "rate_limited",
    "unreachable",
]

REACHABLE_OUTCOMES = frozenset({"success", "empty"})


class Money(BaseModel):
    """A parsed, non-negative price."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["priced"] = "priced"
    amount: float = Field(..., ge=0)
    currency: str = DEFAULT_CURRENCY


class Unpriced(BaseModel):
    """Explicit marker for listings that carry no usable price."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unpriced"] = "unpriced"


UNPRICED = Unpriced()

Price = Annotated[Union[Money, Unpriced], Field(discriminator="kind")]


class CanonicalOffer(BaseModel):
    """Canonical listing every source is normalized into."""

    model_config = ConfigDict(frozen=True)

    source_name: str = Field(..., min_length=1)
    source_url: str
    title: str
    price: Price = UNPRICED
    in_stock: bool = False
    product_url: Optional[str] = None
    image_url: Optional[str] = None
    condition: str = NOT_AVAILABLE
    set_name: str = NOT_AVAILABLE

    @field_validator("condition", "set_name", mode="before")
    @classmethod
    def _default_descriptor(cls, value: Optional[object]) -> str:
        if value is None:
            return NOT_AVAILABLE
        text = str(value).strip()
        return text or NOT_AVAILABLE

    @property
    def is_priced(self) -> bool:
        return isinstance(self.price, Money)


class SourceStatusSnapshot(BaseModel):
    source_name: str
    outcome: Outcome
    offer_count: int = 0
    latency_ms: Optional[int] = None
    tier: Optional[str] = None
    attempts: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class AggregateResult(BaseModel):
    """Full search payload returned to the caller."""

    query: str
    offers: List[CanonicalOffer] = Field(default_factory=list)
    per_source_outcome: Dict[str, Outcome] = Field(default_factory=dict)
    source_statuses: List[SourceStatusSnapshot] = Field(default_factory=list)
    elapsed_ms: int = 0
    all_sources_failed: bool = False
    cached: bool = False

    def status_summary(self) -> Dict[str, SourceStatusSnapshot]:
        return {status.source_name: status for status in self.source_statuses}


class HealthReport(BaseModel):
    sources: Dict[str, bool] = Field(default_factory=dict)
    overall_healthy: bool = False
    reachable_count: int = 0
    min_reachable: int = 1
    details: Dict[str, Outcome] = Field(default_factory=dict)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
