"""
Deal Intake - Submission Module

Validates deal submissions, stores their documents in object storage and
relays the sanitised result to a webhook. Nothing is persisted locally.
"""

from core.submission.schema import (
    PropertyType,
    AttachmentCategory,
    FilePart,
    Attachment,
    UploadResult,
    CATEGORY_LABELS,
    REQUIRED_CATEGORIES,
    OPTIONAL_CATEGORIES,
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE_BYTES,
    MAX_FIELD_LENGTH,
)
from core.submission.errors import (
    IntakeError,
    ConfigurationError,
    RateLimitExceeded,
    ParseError,
    AttachmentRejected,
    FieldValidationFailed,
    StorageUploadFailed,
    RelayFailed,
)
from core.submission.rate_limit import (
    RateLimiter,
    RateLimitDecision,
)
from core.submission.validation import (
    FieldValidationResult,
    check_file_size,
    sanitize_text,
    sanitize_fields,
    validate_submission_fields,
    validate_attachment,
    missing_required_categories,
)
from core.submission.storage import (
    StorageUploader,
    generate_storage_key,
    sanitize_filename,
)
from core.submission.relay import (
    WebhookRelay,
    build_relay_payload,
)
from core.submission.intake import (
    DealIntakeService,
    IntakeReceipt,
    ParsedForm,
    parse_form_parts,
    require_configuration,
)

__all__ = [
    # Schema
    "PropertyType",
    "AttachmentCategory",
    "FilePart",
    "Attachment",
    "UploadResult",
    "CATEGORY_LABELS",
    "REQUIRED_CATEGORIES",
    "OPTIONAL_CATEGORIES",
    "ALLOWED_MIME_TYPES",
    "MAX_FILE_SIZE_BYTES",
    "MAX_FIELD_LENGTH",
    # Errors
    "IntakeError",
    "ConfigurationError",
    "RateLimitExceeded",
    "ParseError",
    "AttachmentRejected",
    "FieldValidationFailed",
    "StorageUploadFailed",
    "RelayFailed",
    # Rate limiting
    "RateLimiter",
    "RateLimitDecision",
    # Validation
    "FieldValidationResult",
    "check_file_size",
    "sanitize_text",
    "sanitize_fields",
    "validate_submission_fields",
    "validate_attachment",
    "missing_required_categories",
    # Storage
    "StorageUploader",
    "generate_storage_key",
    "sanitize_filename",
    # Relay
    "WebhookRelay",
    "build_relay_payload",
    # Pipeline
    "DealIntakeService",
    "IntakeReceipt",
    "ParsedForm",
    "parse_form_parts",
    "require_configuration",
]
