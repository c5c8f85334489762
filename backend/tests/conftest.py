"""Shared test fixtures and configuration for backend tests."""
from pathlib import Path
from typing import Callable, Dict
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.auth.service import UserService
from app.config import AppConfig, EmailSettings, StorageSettings, set_config
from app.conversions.service import ConversionService
from app.database import Database
from app.extraction.service import set_extractor
from app.files.service import FileStorageService
from app.main import app
from app.notifications.service import EmailService
from app.presets.service import PresetService
from app.synthesis.service import set_synthesizer


def _reset_services() -> None:
    Database.reset_instance()
    UserService.reset_instance()
    FileStorageService.reset_instance()
    ConversionService.reset_instance()
    PresetService.reset_instance()
    EmailService.reset_instance()
    set_extractor(None)
    set_synthesizer(None)


@pytest.fixture
def test_config(tmp_path):
    """Point every service at a fresh temp directory and database."""
    config = AppConfig(
        storage=StorageSettings(data_dir=str(tmp_path / "data")).resolve(tmp_path),
        email=EmailSettings(enabled=False),
    )
    _reset_services()
    set_config(config)
    yield config
    _reset_services()
    set_config(None)


class _FakeTTS:
    """Stands in for gTTS: writes a small MP3-ish payload instead of calling Google."""

    def __init__(self, text, lang="en", tld="com"):
        self.text = text
        self.lang = lang
        self.tld = tld

    def save(self, path):
        Path(path).write_bytes(b"ID3" + self.text.encode("utf-8"))


@pytest.fixture
def fake_gtts():
    """Patch gTTS in the synthesis service; yields the constructor mock."""
    with patch("app.synthesis.service.gTTS", MagicMock(side_effect=_FakeTTS)) as mock_gtts:
        yield mock_gtts


@pytest.fixture
def api_client(test_config):
    """Provide a TestClient for the main FastAPI app.

    The lifespan is not entered, so the cleanup sweeper does not start.
    """
    return TestClient(app)


@pytest.fixture
def register_user(api_client) -> Callable[..., Dict[str, str]]:
    """Factory: register an account and return its auth headers."""

    def _register(username: str = "alice", password: str = "secret", email=None):
        payload = {"username": username, "password": password}
        if email:
            payload["email"] = email
        resp = api_client.post("/api/register", json=payload)
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _register


@pytest.fixture
def auth_headers(register_user) -> Dict[str, str]:
    return register_user()
