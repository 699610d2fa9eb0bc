"""
Deal Intake Errors

Every failure the intake pipeline can produce. Each error knows the HTTP
status it maps to and the message that is safe to show the caller;
backend detail stays on the exception for server-side logging.
"""

from __future__ import annotations

from typing import Optional


class IntakeError(Exception):
    """Base class for deal intake failures."""

    status_code: int = 500
    public_message: str = "An unexpected error occurred. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)

    @property
    def message(self) -> str:
        """Message returned to the caller."""
        return self.public_message


class ConfigurationError(IntakeError):
    """Raised when a required secret or endpoint is not configured."""

    status_code = 500

    def __init__(self, public_message: str, detail: str):
        self.public_message = public_message
        self.detail = detail
        super().__init__(detail)


class RateLimitExceeded(IntakeError):
    """Raised when a caller exceeds the request quota for the current window."""

    status_code = 429
    public_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__()


class ParseError(IntakeError):
    """Raised when the request body is not a readable multipart form."""

    status_code = 400

    def __init__(self, message: str):
        self.public_message = message
        super().__init__(message)


class AttachmentRejected(ParseError):
    """Raised when an attachment breaks the size, type or category rules."""


class FieldValidationFailed(IntakeError):
    """Raised with every field problem found in a submission."""

    status_code = 400
    public_message = "Validation failed"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


class StorageUploadFailed(IntakeError):
    """Raised when object storage refuses or fails to store an attachment."""

    status_code = 500

    def __init__(self, filename: str, status: Optional[int], body: str):
        self.filename = filename
        self.status = status
        self.body = body
        self.public_message = f"Failed to upload file: {filename}"
        super().__init__(f"Storage upload failed: {status} - {body}")


class RelayFailed(IntakeError):
    """Raised when the webhook does not accept the submission payload."""

    status_code = 502
    public_message = "Failed to process submission. Please try again."

    def __init__(self, status: Optional[int], detail: str = ""):
        self.status = status
        self.detail = detail
        super().__init__(f"Webhook relay failed: {status} {detail}".strip())
