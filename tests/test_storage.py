"""
Tests for object storage uploads.

Tests cover:
- Storage key format and filename sanitisation
- Request sent to the storage API
- Public URL derivation
- Failure handling (status and transport errors)
"""

import re
from unittest.mock import MagicMock

import pytest
import requests

from core.submission.errors import StorageUploadFailed
from core.submission.schema import AttachmentCategory, UploadResult
from core.submission.storage import (
    StorageUploader,
    generate_storage_key,
    sanitize_filename,
)


KEY_PATTERN = re.compile(r"^uploads/(\d+)-([0-9a-f]{16})-(.+)$")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def session():
    """Session whose POST succeeds."""
    mock_session = MagicMock()
    mock_session.post.return_value = MagicMock(ok=True, status_code=200, text="{}")
    return mock_session


@pytest.fixture
def uploader(session):
    return StorageUploader(
        base_url="https://project.supabase.co/",
        service_key="service-role-key",
        bucket="temp_files",
        timeout=15,
        session=session,
    )


# =============================================================================
# Key Generation Tests
# =============================================================================


class TestStorageKey:
    """Tests for generated object keys."""

    def test_key_format(self):
        key = generate_storage_key("rent roll.xlsx", now_ms=1700000000123)

        match = KEY_PATTERN.match(key)
        assert match is not None
        assert match.group(1) == "1700000000123"
        assert match.group(3) == "rent_roll.xlsx"

    def test_keys_are_unique(self):
        keys = {generate_storage_key("a.pdf", now_ms=1) for _ in range(50)}
        assert len(keys) == 50

    def test_uses_current_time_by_default(self):
        match = KEY_PATTERN.match(generate_storage_key("a.pdf"))
        assert match is not None
        assert int(match.group(1)) > 1_600_000_000_000

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("financials.pdf", "financials.pdf"),
            ("Q3 P&L (final).xlsx", "Q3_P_L__final_.xlsx"),
            ("../../etc/passwd", ".._.._etc_passwd"),
            ("résumé.pdf", "r_sum_.pdf"),
            ("rent-roll_2024.csv", "rent-roll_2024.csv"),
        ],
    )
    def test_sanitize_filename(self, filename, expected):
        assert sanitize_filename(filename) == expected

    def test_sanitize_filename_truncates(self):
        assert len(sanitize_filename("a" * 150 + ".pdf")) == 100


# =============================================================================
# Upload Tests
# =============================================================================


class TestUpload:
    """Tests for StorageUploader.upload."""

    def test_posts_bytes_with_auth(self, uploader, session):
        result = uploader.upload(
            b"%PDF-1.4", "financials.pdf", "application/pdf", AttachmentCategory.FINANCIAL_INFO
        )

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == f"https://project.supabase.co/storage/v1/object/temp_files/{result.key}"
        assert kwargs["data"] == b"%PDF-1.4"
        assert kwargs["headers"] == {
            "Authorization": "Bearer service-role-key",
            "Content-Type": "application/pdf",
        }
        assert kwargs["timeout"] == 15

    def test_returns_public_url(self, uploader):
        result = uploader.upload(
            b"data", "rent roll.csv", "text/csv", AttachmentCategory.RENT_ROLL
        )

        assert isinstance(result, UploadResult)
        assert result.category == AttachmentCategory.RENT_ROLL
        assert result.original_filename == "rent roll.csv"
        assert KEY_PATTERN.match(result.key)
        assert result.key.endswith("-rent_roll.csv")
        assert result.url == (
            f"https://project.supabase.co/storage/v1/object/public/temp_files/{result.key}"
        )

    def test_error_status_raises(self, uploader, session):
        session.post.return_value = MagicMock(ok=False, status_code=403, text="invalid signature")

        with pytest.raises(StorageUploadFailed) as exc_info:
            uploader.upload(b"x", "om.pdf", "application/pdf", AttachmentCategory.OM)

        error = exc_info.value
        assert error.status == 403
        assert error.body == "invalid signature"
        assert error.message == "Failed to upload file: om.pdf"
        assert "403" in str(error)

    @pytest.mark.parametrize("status", [300, 304])
    def test_redirect_status_raises(self, uploader, session, status):
        """Only 2xx counts as stored; requests treats 3xx as ok."""
        response = requests.Response()
        response.status_code = status
        response.encoding = "utf-8"
        response._content = b"moved"
        session.post.return_value = response

        with pytest.raises(StorageUploadFailed) as exc_info:
            uploader.upload(b"x", "om.pdf", "application/pdf", AttachmentCategory.OM)

        assert exc_info.value.status == status
        assert exc_info.value.body == "moved"

    def test_transport_error_raises(self, uploader, session):
        session.post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(StorageUploadFailed) as exc_info:
            uploader.upload(b"x", "om.pdf", "application/pdf", AttachmentCategory.OM)

        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.body

    def test_result_to_dict(self, uploader):
        result = uploader.upload(b"x", "om.pdf", "application/pdf", AttachmentCategory.OM)

        assert result.to_dict() == {
            "category": "om",
            "originalFilename": "om.pdf",
            "url": result.url,
            "key": result.key,
        }

    def test_context_manager_closes_session(self, session):
        with StorageUploader("https://s.example", "k", "b", session=session):
            pass

        session.close.assert_called_once()
