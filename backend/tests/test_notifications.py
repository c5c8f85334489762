"""Tests for the SendGrid email service."""
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from app.auth.schemas import User
from app.config import EmailSettings
from app.notifications.service import TEMPLATES, EmailService


def _user(email="frank@example.com"):
    return User(id=1, username="frank", password="x", email=email, created_at=datetime(2026, 1, 1))


@pytest.fixture
def mock_client():
    with patch("app.notifications.service.SendGridAPIClient") as mock_cls:
        mock_cls.return_value.send.return_value = MagicMock(status_code=202)
        yield mock_cls.return_value


def test_disabled_without_api_key(mock_client):
    service = EmailService(EmailSettings(enabled=True), api_key=None)

    assert not service.enabled
    assert service.send(_user(), "welcome") is False
    mock_client.send.assert_not_called()


def test_disabled_in_settings(mock_client):
    service = EmailService(EmailSettings(enabled=False), api_key="SG.key")

    assert service.send(_user(), "welcome") is False


def test_user_without_email_is_skipped(mock_client):
    service = EmailService(EmailSettings(enabled=True), api_key="SG.key")

    assert service.send(_user(email=None), "welcome") is False
    mock_client.send.assert_not_called()


def test_sends_welcome(mock_client):
    service = EmailService(EmailSettings(enabled=True), api_key="SG.key")

    assert service.send(_user(), "welcome") is True
    mock_client.send.assert_called_once()


def test_unknown_template(mock_client):
    service = EmailService(EmailSettings(enabled=True), api_key="SG.key")

    assert service.send(_user(), "no_such_template") is False
    mock_client.send.assert_not_called()


def test_send_failure_returns_false(mock_client):
    mock_client.send.side_effect = RuntimeError("401 Unauthorized")
    service = EmailService(EmailSettings(enabled=True), api_key="SG.bad")

    assert service.send(_user(), "conversion_complete", conversion_id=5) is False


def test_conversion_template_mentions_id():
    content = TEMPLATES["conversion_complete"](_user(), app_url="http://app", conversion_id=17)

    assert "#17" in content["text"]
    assert "http://app/history" in content["html"]


@pytest.mark.parametrize("template", ["welcome", "conversion_complete"])
def test_username_is_escaped_in_html(template):
    user = User(id=2, username="<b>eve</b>", password="x", created_at=datetime(2026, 1, 1))

    content = TEMPLATES[template](user, app_url="http://app", conversion_id=1)

    assert "<b>eve</b>" not in content["html"]
    assert "&lt;b&gt;eve&lt;/b&gt;" in content["html"]
