"""
Document Storage - Object Storage Uploads for Deal Submissions

Sends each attachment to a Supabase Storage bucket under a collision-
resistant key and returns the public URL. One request per file, no retry.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Final, Optional

import requests

from core.submission.errors import StorageUploadFailed
from core.submission.schema import AttachmentCategory, UploadResult


logger = logging.getLogger(__name__)


# =============================================================================
# Storage Configuration
# =============================================================================

UPLOAD_PREFIX: Final[str] = "uploads"
RANDOM_SUFFIX_BYTES: Final[int] = 8
MAX_FILENAME_LENGTH: Final[int] = 100
DEFAULT_TIMEOUT_SECONDS: Final[int] = 30

UNSAFE_FILENAME_CHARS: Final = re.compile(r"[^a-zA-Z0-9.-]")


# =============================================================================
# Key Generation
# =============================================================================


def sanitize_filename(filename: str) -> str:
    """Replace characters outside letters, digits, dot and hyphen; cap length."""
    return UNSAFE_FILENAME_CHARS.sub("_", filename)[:MAX_FILENAME_LENGTH]


def generate_storage_key(filename: str, now_ms: Optional[int] = None) -> str:
    """
    Build a unique object key for an upload.

    Format: uploads/<epoch-ms>-<16 hex chars>-<sanitised filename>
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = secrets.token_hex(RANDOM_SUFFIX_BYTES)
    return f"{UPLOAD_PREFIX}/{now_ms}-{suffix}-{sanitize_filename(filename)}"


# =============================================================================
# Uploader
# =============================================================================


class StorageUploader:
    """
    Uploads attachments to Supabase Storage with a service-role key.

    Objects are written to {base_url}/storage/v1/object/{bucket}/{key}
    and served from {base_url}/storage/v1/object/public/{bucket}/{key}.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def bucket(self) -> str:
        return self._bucket

    def object_url(self, key: str) -> str:
        """Authenticated write URL for a key."""
        return f"{self._base_url}/storage/v1/object/{self._bucket}/{key}"

    def public_url(self, key: str) -> str:
        """Public read URL for a key."""
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/{key}"

    def upload(
        self,
        content: bytes,
        original_filename: str,
        mime_type: str,
        category: AttachmentCategory,
    ) -> UploadResult:
        """
        Store one file and return where it can be read.

        Args:
            content: Raw file bytes
            original_filename: Filename as sent by the client
            mime_type: Content type sent with the object
            category: Attachment category the file was submitted under

        Returns:
            UploadResult with public URL and storage key

        Raises:
            StorageUploadFailed: On transport failure or non-success status
        """
        key = generate_storage_key(original_filename)

        try:
            response = self._session.post(
                self.object_url(key),
                data=content,
                headers={
                    "Authorization": f"Bearer {self._service_key}",
                    "Content-Type": mime_type,
                },
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise StorageUploadFailed(original_filename, None, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise StorageUploadFailed(original_filename, response.status_code, response.text)

        logger.debug("Stored %s (%d bytes) at %s", original_filename, len(content), key)

        return UploadResult(
            category=category,
            original_filename=original_filename,
            url=self.public_url(key),
            key=key,
        )

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
