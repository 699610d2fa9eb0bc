"""
Submission Relay - Webhook Delivery of Accepted Deals

Builds the JSON document the downstream webhook receives and posts it.
Only sanitised fields and public file URLs are ever relayed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Final, Iterable, Mapping, Optional

import requests

from core.submission.errors import RelayFailed
from core.submission.schema import MAX_CLIENT_IP_LENGTH, UploadResult


logger = logging.getLogger(__name__)


USER_AGENT: Final[str] = "DealIntake-Backend/1.0"
DEFAULT_TIMEOUT_SECONDS: Final[int] = 30


# =============================================================================
# Payload
# =============================================================================


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def build_relay_payload(
    sanitized_fields: Mapping[str, Any],
    uploads: Iterable[UploadResult],
    client_ip: str,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Assemble the webhook document for an accepted submission.

    Args:
        sanitized_fields: Sanitised text fields of the submission
        uploads: Stored attachments, in upload order
        client_ip: Caller address, truncated before relaying
        now: Server timestamp (defaults to current UTC time)

    Returns:
        JSON-serialisable payload. When two uploads share a category the
        later one wins in "files"; "fileUrls" keeps every URL.
    """
    uploads = list(uploads)
    if now is None:
        now = datetime.now(timezone.utc)

    files: dict[str, dict[str, str]] = {}
    for upload in uploads:
        files[upload.category.value] = {
            "originalFilename": upload.original_filename,
            "url": upload.url,
        }

    return {
        **sanitized_fields,
        "serverTimestamp": format_timestamp(now),
        "serverProcessed": True,
        "clientIp": client_ip[:MAX_CLIENT_IP_LENGTH],
        "files": files,
        "fileUrls": [upload.url for upload in uploads],
    }


# =============================================================================
# Relay
# =============================================================================


class WebhookRelay:
    """Posts submission payloads to the configured webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def send(self, payload: Mapping[str, Any]) -> None:
        """
        Deliver a payload.

        Raises:
            RelayFailed: On transport failure or a non-2xx response
        """
        try:
            response = self._session.post(
                self._webhook_url,
                json=dict(payload),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RelayFailed(None, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise RelayFailed(response.status_code)

        logger.debug("Webhook accepted submission (%d)", response.status_code)

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
