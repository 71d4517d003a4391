"""Runtime configuration read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Mapping, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from multisource.constants import (
    BREAKER_FAILURE_THRESHOLD,
    BREAKER_WINDOW_SECONDS,
    DEFAULT_QUERY_DEADLINE_SECONDS,
    DIRECT_TIER_TIMEOUT_SECONDS,
    FALLBACK_TIER_TIMEOUT_SECONDS,
    PROXY_TIER_TIMEOUT_SECONDS,
)
from observability import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "MULTISOURCE_"


class Settings(BaseModel):
    proxy_base_url: Optional[str] = None
    fallback_base_url: Optional[str] = None

    query_deadline_seconds: float = Field(DEFAULT_QUERY_DEADLINE_SECONDS, gt=0)
    proxy_timeout_seconds: float = Field(PROXY_TIER_TIMEOUT_SECONDS, gt=0)
    direct_timeout_seconds: float = Field(DIRECT_TIER_TIMEOUT_SECONDS, gt=0)
    fallback_timeout_seconds: float = Field(FALLBACK_TIER_TIMEOUT_SECONDS, gt=0)

    breaker_threshold: int = Field(BREAKER_FAILURE_THRESHOLD, ge=1)
    breaker_window_seconds: float = Field(BREAKER_WINDOW_SECONDS, gt=0)

    health_min_reachable: int = Field(1, ge=0)
    # 0 disables the query cache
    cache_ttl_seconds: float = Field(0.0, ge=0)

    enabled_sources: Optional[List[str]] = None

    @field_validator("proxy_base_url", "fallback_base_url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, value):
        if value is None:
            return None
        text = str(value).strip().rstrip("/")
        return text or None

    @field_validator("enabled_sources", mode="before")
    @classmethod
    def _split_sources(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        names = [str(name).strip() for name in value if str(name).strip()]
        return names or None

    @property
    def cache_enabled(self) -> bool:
        return self.cache_ttl_seconds > 0


_FLOAT_FIELDS = {
    "query_deadline_seconds",
    "proxy_timeout_seconds",
    "direct_timeout_seconds",
    "fallback_timeout_seconds",
    "breaker_window_seconds",
    "cache_ttl_seconds",
}
_INT_FIELDS = {"breaker_threshold", "health_min_reachable"}
_TEXT_FIELDS = {"proxy_base_url", "fallback_base_url", "enabled_sources"}


def _coerce(name: str, raw: str) -> Optional[Union[str, float, int]]:
    """Convert an env string; malformed numbers fall back to the default."""
    try:
        if name in _FLOAT_FIELDS:
            value = float(raw)
            if name == "cache_ttl_seconds":
                return value if value >= 0 else None
            return value if value > 0 else None
        if name in _INT_FIELDS:
            value = int(raw)
            minimum = 1 if name == "breaker_threshold" else 0
            return value if value >= minimum else None
    except ValueError:
        return None
    return raw


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    *,
    dotenv_path: Optional[Union[str, Path]] = None,
) -> Settings:
    """
    Build Settings from MULTISOURCE_* variables.

    Args:
        env: Mapping to read instead of os.environ (no .env loading then)
        dotenv_path: Explicit .env file; defaults to ./.env when present

    Returns:
        Validated Settings instance
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env", override=False)
        env = os.environ

    values = {}
    for name in _FLOAT_FIELDS | _INT_FIELDS | _TEXT_FIELDS:
        raw = env.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None or not raw.strip():
            continue
        value = _coerce(name, raw.strip())
        if value is None:
            logger.warning(
                f"Ignoring invalid {ENV_PREFIX}{name.upper()}",
                extra={"event": "invalid_setting", "setting": name, "value": raw},
            )
            continue
        values[name] = value
    return Settings(**values)
