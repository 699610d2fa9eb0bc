"""
Tests for the webhook relay.

Tests cover:
- Payload shape (fields, timestamp, client IP, files, fileUrls)
- Delivery request
- Non-2xx and transport failures
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests

from core.submission.errors import RelayFailed
from core.submission.relay import (
    USER_AGENT,
    WebhookRelay,
    build_relay_payload,
    format_timestamp,
)
from core.submission.schema import AttachmentCategory, UploadResult


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def uploads():
    return [
        UploadResult(
            category=AttachmentCategory.FINANCIAL_INFO,
            original_filename="financials.pdf",
            url="https://s.example/public/uploads/1-a-financials.pdf",
            key="uploads/1-a-financials.pdf",
        ),
        UploadResult(
            category=AttachmentCategory.RENT_ROLL,
            original_filename="rent roll.xlsx",
            url="https://s.example/public/uploads/2-b-rent_roll.xlsx",
            key="uploads/2-b-rent_roll.xlsx",
        ),
    ]


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


@pytest.fixture
def session():
    mock_session = MagicMock()
    mock_session.headers = {}
    mock_session.post.return_value = MagicMock(status_code=200)
    return mock_session


# =============================================================================
# Payload Tests
# =============================================================================


class TestBuildRelayPayload:
    """Tests for the webhook document."""

    def test_includes_sanitized_fields(self, uploads, fixed_now):
        payload = build_relay_payload(
            {"propertyName": "Sunny Acres", "unitCount": "84"}, uploads, "1.2.3.4", fixed_now
        )

        assert payload["propertyName"] == "Sunny Acres"
        assert payload["unitCount"] == "84"

    def test_server_metadata(self, uploads, fixed_now):
        payload = build_relay_payload({}, uploads, "1.2.3.4", fixed_now)

        assert payload["serverTimestamp"] == "2024-03-01T12:30:45.123Z"
        assert payload["serverProcessed"] is True
        assert payload["clientIp"] == "1.2.3.4"

    def test_client_ip_truncated(self, fixed_now):
        payload = build_relay_payload({}, [], "f" * 60, fixed_now)

        assert payload["clientIp"] == "f" * 45

    def test_files_mapping_and_urls(self, uploads, fixed_now):
        payload = build_relay_payload({}, uploads, "1.2.3.4", fixed_now)

        assert payload["files"] == {
            "financialInfo": {
                "originalFilename": "financials.pdf",
                "url": "https://s.example/public/uploads/1-a-financials.pdf",
            },
            "rentRoll": {
                "originalFilename": "rent roll.xlsx",
                "url": "https://s.example/public/uploads/2-b-rent_roll.xlsx",
            },
        }
        assert payload["fileUrls"] == [u.url for u in uploads]

    def test_later_upload_wins_category(self, uploads, fixed_now):
        replacement = UploadResult(
            category=AttachmentCategory.FINANCIAL_INFO,
            original_filename="financials-v2.pdf",
            url="https://s.example/public/uploads/3-c-financials-v2.pdf",
            key="uploads/3-c-financials-v2.pdf",
        )

        payload = build_relay_payload({}, uploads + [replacement], "1.2.3.4", fixed_now)

        assert payload["files"]["financialInfo"]["originalFilename"] == "financials-v2.pdf"
        assert len(payload["fileUrls"]) == 3

    def test_server_keys_override_client_fields(self, fixed_now):
        payload = build_relay_payload({"serverProcessed": "no"}, [], "1.2.3.4", fixed_now)

        assert payload["serverProcessed"] is True

    def test_default_timestamp_is_utc(self):
        payload = build_relay_payload({}, [], "1.2.3.4")

        assert payload["serverTimestamp"].endswith("Z")

    def test_format_timestamp_converts_to_utc(self):
        moment = datetime(2024, 1, 1, 8, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert format_timestamp(moment) == "2024-01-01T13:00:00.000Z"


# =============================================================================
# Delivery Tests
# =============================================================================


class TestWebhookRelay:
    """Tests for WebhookRelay.send."""

    def test_posts_json(self, session):
        relay = WebhookRelay("https://hooks.example/deal", timeout=10, session=session)

        relay.send({"propertyName": "Sunny Acres"})

        session.post.assert_called_once_with(
            "https://hooks.example/deal",
            json={"propertyName": "Sunny Acres"},
            timeout=10,
        )

    def test_sets_user_agent(self, session):
        WebhookRelay("https://hooks.example/deal", session=session)

        assert session.headers["User-Agent"] == USER_AGENT

    @pytest.mark.parametrize("status", [200, 201, 202, 204])
    def test_success_statuses(self, session, status):
        session.post.return_value = MagicMock(status_code=status)

        WebhookRelay("https://hooks.example/deal", session=session).send({})

    @pytest.mark.parametrize("status", [301, 400, 500, 503])
    def test_non_2xx_raises(self, session, status):
        session.post.return_value = MagicMock(status_code=status, text="upstream detail")

        with pytest.raises(RelayFailed) as exc_info:
            WebhookRelay("https://hooks.example/deal", session=session).send({})

        assert exc_info.value.status == status
        assert exc_info.value.message == "Failed to process submission. Please try again."
        assert "upstream detail" not in exc_info.value.message

    def test_transport_error_raises(self, session):
        session.post.side_effect = requests.Timeout("timed out")

        with pytest.raises(RelayFailed) as exc_info:
            WebhookRelay("https://hooks.example/deal", session=session).send({})

        assert exc_info.value.status is None
