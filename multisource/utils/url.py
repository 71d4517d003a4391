"""URL normalization helpers for offer de-duplication."""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

DEFAULT_TRACKING_KEYS: Sequence[str] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
    "_pos",
    "_sid",
    "_ss",
    "ref",
)

DEFAULT_TRACKING_PREFIXES: Sequence[str] = (
    "utm",
    "ga_",
)

_MULTI_SLASH_PATTERN = re.compile(r"/{2,}")


def absolute_url(base_url: str, href: Any) -> Optional[str]:
    """Resolve a possibly relative link against the store root.

    Non-string values (a JSON-LD url list, an image object) resolve to None.
    """
    if not isinstance(href, str):
        return None
    href = href.strip()
    if not href or href == "#":
        return None
    if href.startswith("//"):
        return f"https:{href}"
    return urljoin(base_url.rstrip("/") + "/", href)


def _drop_tracking_params(
    params: List[Tuple[str, str]],
    tracking_keys: Sequence[str],
    tracking_prefixes: Sequence[str],
) -> List[Tuple[str, str]]:
    key_set = {key.lower() for key in tracking_keys}
    cleaned: List[Tuple[str, str]] = []
    for key, value in params:
        key_lower = key.lower()
        if key_lower in key_set:
            continue
        if any(key_lower.startswith(prefix) for prefix in tracking_prefixes):
            continue
        cleaned.append((key, value))
    return cleaned


def canonicalize_url(
    raw_url: str,
    *,
    tracking_keys: Sequence[str] = DEFAULT_TRACKING_KEYS,
    tracking_prefixes: Sequence[str] = DEFAULT_TRACKING_PREFIXES,
) -> str:
    """Generate a stable key for duplicate detection.

    Forces https, drops www., tracking params and fragments, collapses repeated
    slashes and sorts the remaining query params.
    """
    raw_url = (raw_url or "").strip()
    if not raw_url:
        return ""
    if raw_url.startswith("//"):
        raw_url = f"https:{raw_url}"
    elif "://" not in raw_url:
        raw_url = f"https://{raw_url}"

    split = urlsplit(raw_url)
    netloc = split.netloc.lower()
    if netloc.startswith("www."):
        netloc = netloc[4:]
    if netloc.endswith(":443") or netloc.endswith(":80"):
        netloc = netloc.rsplit(":", 1)[0]

    path = _MULTI_SLASH_PATTERN.sub("/", split.path or "/")
    if path != "/":
        path = path.rstrip("/") or "/"

    query_pairs = parse_qsl(split.query, keep_blank_values=False)
    query_pairs = _drop_tracking_params(query_pairs, tracking_keys, tracking_prefixes)
    query_pairs.sort(key=lambda pair: (pair[0].lower(), pair[1]))
    query = urlencode(query_pairs, doseq=True)

    return urlunsplit(("https", netloc, path, query, ""))


__all__ = ["absolute_url", "canonicalize_url"]
