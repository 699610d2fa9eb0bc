"""
Submission Validation - Field, Attachment and Sanitisation Rules

Field validation collects every problem so the submitter sees them all at
once. Attachment validation is fail-fast: the first bad file aborts the
request before anything is uploaded.

Sanitisation strips markup from free text for display safety. It is a
denylist and does not defend against encoding-based injection; downstream
consumers must still escape what they render.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Final, Mapping

from core.submission.errors import AttachmentRejected
from core.submission.schema import (
    ALLOWED_MIME_TYPES,
    MAX_FIELD_LENGTH,
    MAX_FILE_SIZE_BYTES,
    REQUIRED_CATEGORIES,
    Attachment,
    AttachmentCategory,
    FilePart,
)
from utils.formatting import format_file_size


# =============================================================================
# Patterns
# =============================================================================

SCRIPT_BLOCK_PATTERN: Final = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
ANGLE_BRACKET_PATTERN: Final = re.compile(r"[<>]")
EMAIL_PATTERN: Final = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_NAME_LENGTH: Final[int] = 2


# =============================================================================
# Validation Result
# =============================================================================


@dataclass(frozen=True)
class FieldValidationResult:
    """
    Result of field validation.

    sanitized always holds the cleaned copy of every string field, whether
    or not validation passed.
    """

    errors: tuple[str, ...]
    sanitized: dict[str, Any]

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        """Convert result to dictionary."""
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "sanitized": dict(self.sanitized),
        }


# =============================================================================
# Sanitisation
# =============================================================================


def sanitize_text(value: str) -> str:
    """
    Strip script blocks and angle brackets, trim, and cap length.

    Idempotent: sanitize_text(sanitize_text(x)) == sanitize_text(x).
    """
    cleaned = SCRIPT_BLOCK_PATTERN.sub("", value)
    cleaned = ANGLE_BRACKET_PATTERN.sub("", cleaned)
    cleaned = cleaned.strip()[:MAX_FIELD_LENGTH]
    # Cap may expose trailing whitespace
    return cleaned.rstrip()


def sanitize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Sanitise every string value; other values pass through unchanged."""
    return {
        key: sanitize_text(value) if isinstance(value, str) else value
        for key, value in fields.items()
    }


# =============================================================================
# Field Validation
# =============================================================================


def _text(fields: Mapping[str, Any], name: str) -> str:
    value = fields.get(name)
    if not isinstance(value, str):
        return ""
    return value.strip()


def validate_submission_fields(fields: Mapping[str, Any]) -> FieldValidationResult:
    """
    Validate the text fields of a deal submission.

    Args:
        fields: Text parts of the multipart form, keyed by field name.

    Returns:
        FieldValidationResult with every error found and the sanitised fields.
    """
    errors: list[str] = []

    if len(_text(fields, "propertyName")) < MIN_NAME_LENGTH:
        errors.append("Property Name is required and must be at least 2 characters")

    if not _text(fields, "propertyType"):
        errors.append("Property Type is required")

    if len(_text(fields, "submitterName")) < MIN_NAME_LENGTH:
        errors.append("Your Name is required and must be at least 2 characters")

    if not _text(fields, "submitterPhone"):
        errors.append("Your Phone is required")

    email = _text(fields, "submitterEmail")
    if not email:
        errors.append("Your Email is required")
    elif not EMAIL_PATTERN.match(email):
        errors.append("Invalid email format")

    if _text(fields, "finalAcknowledgement") != "true":
        errors.append("Final acknowledgement is required")

    return FieldValidationResult(errors=tuple(errors), sanitized=sanitize_fields(fields))


def missing_required_categories(attachments: list[Attachment]) -> list[str]:
    """
    List an error for each required category with no attachment.

    Args:
        attachments: Validated attachments of the submission.

    Returns:
        Error messages, empty when every required document is present.
    """
    present = {attachment.category for attachment in attachments}
    return [
        f"{category.label} document is required"
        for category in REQUIRED_CATEGORIES
        if category not in present
    ]


# =============================================================================
# Attachment Validation
# =============================================================================


def check_file_size(filename: str, size: int) -> None:
    """Raise AttachmentRejected if size exceeds the per-file limit."""
    if size > MAX_FILE_SIZE_BYTES:
        raise AttachmentRejected(
            f"File {filename} exceeds maximum size of "
            f"{format_file_size(MAX_FILE_SIZE_BYTES)}"
        )


def validate_attachment(part: FilePart) -> Attachment:
    """
    Check an uploaded file against the size, type and category rules.

    Args:
        part: File part read from the multipart body.

    Returns:
        Attachment ready for upload.

    Raises:
        AttachmentRejected: On the first rule the file breaks.
    """
    check_file_size(part.filename, part.size)

    if part.content_type not in ALLOWED_MIME_TYPES:
        raise AttachmentRejected(
            f"File type {part.content_type} is not allowed for {part.filename}"
        )

    category = AttachmentCategory.from_field_name(part.field_name)
    if category is None:
        raise AttachmentRejected(f"Invalid file category: {part.field_name}")

    return Attachment(
        category=category,
        original_filename=part.filename,
        mime_type=part.content_type,
        content=part.content,
    )
