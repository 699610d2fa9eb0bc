"""
Deal Submission Schema - Attachment Categories and Upload Records

Defines the closed set of document categories a deal submission accepts,
the file constraints enforced on every attachment, and the records passed
between the uploader and the webhook relay.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional


# =============================================================================
# Enums
# =============================================================================


class PropertyType(Enum):
    """Property types offered on the intake form."""

    RV_PARK = "RV Park"
    MHP = "Mobile Home Park"
    MULTIFAMILY = "Multifamily"


class AttachmentCategory(Enum):
    """Document categories accepted as file parts. Value is the form field name."""

    FINANCIAL_INFO = "financialInfo"
    PNL = "pnl"
    RENT_ROLL = "rentRoll"
    T12 = "t12"
    OM = "om"
    CAPEX = "capex"
    UTILITY = "utility"

    @property
    def label(self) -> str:
        """Human-readable label for forms and error messages."""
        return CATEGORY_LABELS[self]

    @classmethod
    def from_field_name(cls, field_name: str) -> Optional["AttachmentCategory"]:
        """Look up a category by form field name, None if unrecognised."""
        try:
            return cls(field_name)
        except ValueError:
            return None


# =============================================================================
# Constants
# =============================================================================

CATEGORY_LABELS: Final[dict[AttachmentCategory, str]] = {
    AttachmentCategory.FINANCIAL_INFO: "Financial Information",
    AttachmentCategory.PNL: "Profit & Loss (P&L)",
    AttachmentCategory.RENT_ROLL: "Rent Roll",
    AttachmentCategory.T12: "Trailing 12 (T12)",
    AttachmentCategory.OM: "Offering Memo (OM)",
    AttachmentCategory.CAPEX: "CapEx Summary",
    AttachmentCategory.UTILITY: "Utility Bills",
}

# A submission is rejected unless each of these has an attachment
REQUIRED_CATEGORIES: Final[tuple[AttachmentCategory, ...]] = (
    AttachmentCategory.FINANCIAL_INFO,
)

OPTIONAL_CATEGORIES: Final[tuple[AttachmentCategory, ...]] = tuple(
    c for c in AttachmentCategory if c not in REQUIRED_CATEGORIES
)

ALLOWED_MIME_TYPES: Final[frozenset[str]] = frozenset(
    {
        "application/pdf",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/csv",
        "image/jpeg",
        "image/png",
        "image/gif",
    }
)

# Maximum file size (25MB)
MAX_FILE_SIZE_BYTES: Final[int] = 25 * 1024 * 1024

# Free-text fields are capped at this length after sanitisation
MAX_FIELD_LENGTH: Final[int] = 10_000

# Client IP is truncated before relaying
MAX_CLIENT_IP_LENGTH: Final[int] = 45


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class FilePart:
    """A file part read from the multipart body, not yet validated."""

    field_name: str
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class Attachment:
    """
    A validated attachment ready for upload.

    Only constructed through validate_attachment, so category, MIME type
    and size always satisfy the allow-lists.
    """

    category: AttachmentCategory
    original_filename: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of storing one attachment in object storage."""

    category: AttachmentCategory
    original_filename: str
    url: str
    key: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "originalFilename": self.original_filename,
            "url": self.url,
            "key": self.key,
        }
