"""Static source catalogue: which stores exist and how each is reached."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Type

from multisource.adapters import (
    CatlotusAdapter,
    MagicSurAdapter,
    ShopifySuggestAdapter,
    SourceAdapter,
    TCGMatchAdapter,
    WooCommerceAdapter,
)
from multisource.exceptions import ConfigurationError
from multisource.settings import Settings
from multisource.transport.base import TransportTier
from multisource.transport.tiers import DirectTier, FallbackServiceTier, ProxyRelayTier


@dataclass(frozen=True)
class SourceConfig:
    name: str
    display_name: str
    base_url: str
    adapter: SourceAdapter
    tiers: Tuple[TransportTier, ...]

    def __post_init__(self):
        if not self.tiers:
            raise ConfigurationError("Source needs at least one tier", detail={"source": self.name})


# (name, display name, site root, adapter class), in dispatch order
STORES: Sequence[Tuple[str, str, str, Type[SourceAdapter]]] = (
    ("paytowin", "Pay2Win", "https://www.paytowin.cl", ShopifySuggestAdapter),
    ("tcgmatch", "TCGMatch", "https://tcgmatch.cl", TCGMatchAdapter),
    ("catlotus", "Catlotus", "https://catlotus.cl", CatlotusAdapter),
    ("lacripta", "La Cripta", "https://lacripta.cl", WooCommerceAdapter),
    ("magicsur", "Magic Sur", "https://www.cartasmagicsur.cl", MagicSurAdapter),
    ("lacomarca", "La Comarca", "https://www.tiendalacomarca.cl", ShopifySuggestAdapter),
    ("piedrabruja", "Piedra Bruja", "https://www.piedrabruja.cl", ShopifySuggestAdapter),
    ("afkstore", "AfkStore", "https://www.afkstore.cl", ShopifySuggestAdapter),
    ("oasisgames", "Oasis Games", "https://www.oasisgames.cl", ShopifySuggestAdapter),
)

# Stores the fallback scraper service has a route for
FALLBACK_ROUTES: Dict[str, str] = {
    "paytowin": "paytowin-direct",
    "magicsur": "magicsur-direct",
}


def build_tiers(settings: Settings, *, with_fallback: bool = True) -> Tuple[TransportTier, ...]:
    tiers: List[TransportTier] = []
    if settings.proxy_base_url:
        tiers.append(ProxyRelayTier(settings.proxy_base_url, settings.proxy_timeout_seconds))
    tiers.append(DirectTier(settings.direct_timeout_seconds))
    if with_fallback and settings.fallback_base_url:
        tiers.append(
            FallbackServiceTier(settings.fallback_base_url, settings.fallback_timeout_seconds)
        )
    return tuple(tiers)


def build_default_sources(settings: Optional[Settings] = None) -> List[SourceConfig]:
    settings = settings or Settings()
    known = [name for name, _, _, _ in STORES]
    if settings.enabled_sources:
        unknown = sorted(set(settings.enabled_sources) - set(known))
        if unknown:
            raise ConfigurationError(
                "Unknown sources enabled", detail={"unknown": unknown, "known": known}
            )

    sources: List[SourceConfig] = []
    for name, display_name, base_url, adapter_cls in STORES:
        if settings.enabled_sources and name not in settings.enabled_sources:
            continue
        fallback_route = FALLBACK_ROUTES.get(name)
        sources.append(
            SourceConfig(
                name=name,
                display_name=display_name,
                base_url=base_url,
                adapter=adapter_cls(name, base_url, fallback_route=fallback_route),
                tiers=build_tiers(settings, with_fallback=fallback_route is not None),
            )
        )
    return sources


def describe_sources(sources: Sequence[SourceConfig]) -> List[Dict[str, str]]:
    return [
        {
            "name": source.name,
            "display_name": source.display_name,
            "url": source.base_url,
            "tiers": ",".join(tier.name for tier in source.tiers),
        }
        for source in sources
    ]
