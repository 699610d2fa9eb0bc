"""
Deal Intake - Submission Pipeline

Runs an accepted request through field validation, sequential storage
uploads and webhook relay. Stops at the first infrastructure failure;
objects already stored at that point are left in the bucket and their
keys are logged for manual cleanup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

import requests

from core.submission.errors import (
    ConfigurationError,
    FieldValidationFailed,
    RelayFailed,
    StorageUploadFailed,
)
from core.submission.relay import WebhookRelay, build_relay_payload
from core.submission.schema import Attachment, FilePart, UploadResult
from core.submission.storage import StorageUploader
from core.submission.validation import (
    missing_required_categories,
    validate_attachment,
    validate_submission_fields,
)
from utils.config import Config


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Gate
# =============================================================================


def require_configuration(config: Config) -> None:
    """
    Ensure the relay and storage secrets are present.

    Raises:
        ConfigurationError: Naming the missing setting in its detail
    """
    if not config.webhook_configured:
        raise ConfigurationError("Server configuration error", "WEBHOOK_URL not configured")

    if not config.storage_configured:
        raise ConfigurationError(
            "Storage configuration error",
            "SUPABASE_URL or SUPABASE_SERVICE_KEY not configured",
        )


# =============================================================================
# Form Parsing
# =============================================================================


@dataclass(frozen=True)
class ParsedForm:
    """Text fields and validated attachments of one multipart request."""

    fields: dict[str, str] = field(default_factory=dict)
    attachments: tuple[Attachment, ...] = ()


def parse_form_parts(parts: Iterable[tuple[str, Union[str, FilePart]]]) -> ParsedForm:
    """
    Split multipart items into text fields and attachments.

    A repeated text field keeps its last value. File parts are validated
    as they are met; the first invalid one raises.

    Raises:
        AttachmentRejected: From validate_attachment
    """
    fields: dict[str, str] = {}
    attachments: list[Attachment] = []

    for name, value in parts:
        if isinstance(value, FilePart):
            attachments.append(validate_attachment(value))
        else:
            fields[name] = value

    return ParsedForm(fields=fields, attachments=tuple(attachments))


# =============================================================================
# Pipeline
# =============================================================================


@dataclass(frozen=True)
class IntakeReceipt:
    """What an accepted submission produced."""

    uploads: tuple[UploadResult, ...]
    payload: dict[str, Any]

    @property
    def file_count(self) -> int:
        return len(self.uploads)


class DealIntakeService:
    """
    Validates, stores and relays deal submissions.

    Collaborators are injected so tests can replace the HTTP sessions.
    """

    def __init__(self, uploader: StorageUploader, relay: WebhookRelay):
        self._uploader = uploader
        self._relay = relay

    @classmethod
    def from_config(
        cls,
        config: Config,
        session: Optional[requests.Session] = None,
    ) -> "DealIntakeService":
        """Build a service wired to the configured storage and webhook."""
        return cls(
            uploader=StorageUploader(
                base_url=config.storage_url,
                service_key=config.storage_service_key,
                bucket=config.storage_bucket,
                timeout=config.request_timeout,
                session=session,
            ),
            relay=WebhookRelay(
                webhook_url=config.webhook_url,
                timeout=config.request_timeout,
                session=session,
            ),
        )

    def process(self, form: ParsedForm, client_ip: str) -> IntakeReceipt:
        """
        Run one submission through the pipeline.

        Args:
            form: Parsed request with validated attachments
            client_ip: Caller address for the relay payload

        Returns:
            IntakeReceipt with upload results and the relayed payload

        Raises:
            FieldValidationFailed: With every field and document problem
            StorageUploadFailed: On the first failed upload
            RelayFailed: If the webhook rejects the payload
        """
        validation = validate_submission_fields(form.fields)
        errors = list(validation.errors)
        errors.extend(missing_required_categories(list(form.attachments)))
        if errors:
            raise FieldValidationFailed(errors)

        uploads = self._upload_all(form.attachments)
        payload = build_relay_payload(validation.sanitized, uploads, client_ip)

        try:
            self._relay.send(payload)
        except RelayFailed as e:
            logger.error("Webhook error: %s", e)
            self._log_orphans(uploads)
            raise

        logger.info(
            "Submission relayed for %r with %d file(s)",
            validation.sanitized.get("propertyName", ""),
            len(uploads),
        )
        return IntakeReceipt(uploads=tuple(uploads), payload=payload)

    def _upload_all(self, attachments: Iterable[Attachment]) -> list[UploadResult]:
        uploads: list[UploadResult] = []
        for attachment in attachments:
            try:
                uploads.append(
                    self._uploader.upload(
                        attachment.content,
                        attachment.original_filename,
                        attachment.mime_type,
                        attachment.category,
                    )
                )
            except StorageUploadFailed as e:
                logger.error("Failed to upload %s: %s", attachment.original_filename, e)
                self._log_orphans(uploads)
                raise
        return uploads

    @staticmethod
    def _log_orphans(uploads: list[UploadResult]) -> None:
        if uploads:
            logger.warning(
                "Orphaned storage objects: %s",
                ", ".join(upload.key for upload in uploads),
            )

    def close(self) -> None:
        """Close the storage and webhook sessions."""
        self._uploader.close()
        self._relay.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
