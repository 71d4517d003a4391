"""Anti-bot interception detection.

A blocked response is not a transient network failure: retrying immediately
returns the same challenge page, so callers stop the tier chain on a hit.
"""

from __future__ import annotations

from typing import Optional

import httpx

CHALLENGE_URL_MARKERS = (
    "sgcaptcha",
    "captcha",
    "/cdn-cgi/challenge",
    "challenge-platform",
)

CHALLENGE_BODY_MARKERS = (
    "sgcaptcha",
    "captcha detected",
    "g-recaptcha",
    "h-captcha",
    "cf-chl",
    "cf_chl_opt",
    "attention required! | cloudflare",
    "just a moment...",
    "automated access",
)

# Only the head of the body is scanned; challenge pages are small.
_BODY_SCAN_LIMIT = 8192


def _scan_body(response: httpx.Response) -> Optional[str]:
    try:
        head = response.text[:_BODY_SCAN_LIMIT].lower()
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        return None
    for marker in CHALLENGE_BODY_MARKERS:
        if marker in head:
            return marker
    return None


def detect_block(response: httpx.Response, expected_content: str = "json") -> Optional[str]:
    """Return a human-readable reason when the response is an anti-bot interception."""
    final_url = str(response.url).lower()
    for marker in CHALLENGE_URL_MARKERS:
        if marker in final_url:
            return f"Redirected to challenge page ({marker})"

    for hop in [*response.history, response]:
        location = (hop.headers.get("location") or "").lower()
        if any(marker in location for marker in CHALLENGE_URL_MARKERS):
            return "Redirect chain passed through a challenge page"

    # Body markers are only trusted where a real listing could not contain them:
    # error statuses, or an HTML page where JSON was expected.
    content_type = response.headers.get("content-type", "").lower()
    suspicious = response.status_code in (403, 429, 503) or (
        expected_content == "json" and "html" in content_type
    )
    if suspicious:
        marker = _scan_body(response)
        if marker:
            return f"Challenge markup in response body ({marker})"
    return None


__all__ = ["detect_block", "CHALLENGE_URL_MARKERS", "CHALLENGE_BODY_MARKERS"]
