"""
CORS headers for the intake endpoint.

Origins are checked per request so preview deployments on the hosting
platform can submit without being listed one by one.
"""

from __future__ import annotations

from typing import Final, Sequence
from urllib.parse import urlparse

from utils.config import Config


ALLOW_METHODS: Final[str] = "POST, OPTIONS"
ALLOW_HEADERS: Final[str] = "Content-Type, X-Requested-With"
MAX_AGE_SECONDS: Final[str] = "86400"


def _matches_preview_suffix(origin: str, suffix: str) -> bool:
    if not suffix:
        return False
    host = urlparse(origin).hostname or ""
    suffix = suffix.lstrip(".").lower()
    return host == suffix or host.endswith("." + suffix)


def resolve_allowed_origin(
    origin: str,
    allowed_origins: Sequence[str],
    preview_suffix: str = "",
) -> str:
    """
    Pick the Access-Control-Allow-Origin value for a request origin.

    An empty allow-list admits every origin. Otherwise the origin must be
    listed exactly or sit under the preview suffix; anything else gets the
    first listed origin, which the browser will refuse.
    """
    if not allowed_origins:
        return origin or "*"

    if origin and (origin in allowed_origins or _matches_preview_suffix(origin, preview_suffix)):
        return origin

    return allowed_origins[0]


def cors_headers(origin: str, config: Config) -> dict[str, str]:
    """Full CORS header set for an intake response."""
    return {
        "Access-Control-Allow-Origin": resolve_allowed_origin(
            origin, config.allowed_origins, config.preview_origin_suffix
        ),
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": MAX_AGE_SECONDS,
        "Vary": "Origin",
    }


def public_cors_headers() -> dict[str, str]:
    """Permissive headers for read-only endpoints."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
    }
