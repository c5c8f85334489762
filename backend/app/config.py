"""VoiceDoc application configuration.

Loads settings from two YAML files:
  * voicedoc.settings.yaml  — non-secret configuration
  * voicedoc.secrets.yaml   — secrets (never committed)

Relative storage paths are resolved against the directory holding the
settings file, or against the project root when the settings file lives in
a ``config/`` directory.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("voicedoc.settings.yaml")
SECRETS_FILE  = Path("voicedoc.secrets.yaml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _base_dir_for(settings_path: Path) -> Path:
    settings_dir = settings_path.resolve().parent
    if settings_dir.name == "config":
        return settings_dir.parent
    return settings_dir


# ---------------------------------------------------------------------------
# Secrets models
# ---------------------------------------------------------------------------


class JWTSecrets(BaseModel):
    secret_key: str = "change-me-in-production"
    algorithm:  str = "HS256"


class SendGridSecrets(BaseModel):
    api_key: Optional[str] = None


class Secrets(BaseModel):
    jwt:      JWTSecrets      = Field(default_factory=JWTSecrets)
    sendgrid: SendGridSecrets = Field(default_factory=SendGridSecrets)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str       = "0.0.0.0"
    port:            int       = 8000
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    level: str = "info"


class StorageSettings(BaseModel):
    """On-disk locations for uploads, generated audio and the database."""
    data_dir:   str = "./data"
    upload_dir: str = "uploads"
    audio_dir:  str = "uploads/audio"
    db_path:    str = "voicedoc.duckdb"

    def resolve(self, base_dir: Path) -> "StorageSettings":
        data_dir = Path(self.data_dir)
        if not data_dir.is_absolute():
            data_dir = base_dir / data_dir

        def _under_data(value: str) -> str:
            path = Path(value)
            return str(path if path.is_absolute() else data_dir / path)

        return StorageSettings(
            data_dir=str(data_dir),
            upload_dir=_under_data(self.upload_dir),
            audio_dir=_under_data(self.audio_dir),
            db_path=_under_data(self.db_path),
        )


class UploadSettings(BaseModel):
    max_file_size_bytes: int       = 10 * 1024 * 1024
    allowed_mime_types:  List[str] = Field(default_factory=lambda: [
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/png",
        "text/plain",
    ])


class OcrDefaults(BaseModel):
    mode:           int           = 3
    engine:         int           = 3
    language:       str           = "eng"
    tesseract_cmd:  Optional[str] = None


class TTSSettings(BaseModel):
    default_language: str = "en"
    tld:              str = "com"
    audio_url_prefix: str = "/api/audio"


class QuotaSettings(BaseModel):
    guest_daily_limit: int                          = 3
    guest_scope:       Literal["shared", "client"]  = "shared"


class CleanupSettings(BaseModel):
    enabled:          bool = True
    interval_seconds: int  = 24 * 60 * 60
    max_age_hours:    int  = 24


class AuthSettings(BaseModel):
    token_expire_minutes: int = 7 * 24 * 60
    default_credits:      int = 100


class EmailSettings(BaseModel):
    enabled:      bool = True
    from_address: str  = "noreply@voicedoc.app"
    app_url:      str  = "https://voicedoc.app"


class AppConfig(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    uploads: UploadSettings  = Field(default_factory=UploadSettings)
    ocr:     OcrDefaults     = Field(default_factory=OcrDefaults)
    tts:     TTSSettings     = Field(default_factory=TTSSettings)
    quota:   QuotaSettings   = Field(default_factory=QuotaSettings)
    cleanup: CleanupSettings = Field(default_factory=CleanupSettings)
    auth:    AuthSettings    = Field(default_factory=AuthSettings)
    email:   EmailSettings   = Field(default_factory=EmailSettings)
    secrets: Secrets         = Field(default_factory=Secrets)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

_config: Optional[AppConfig] = None


def load_config(
    settings_path: Optional[Path] = None,
    secrets_path: Optional[Path] = None,
) -> AppConfig:
    """Load and merge settings + secrets into a single *AppConfig* object."""
    settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
    if secrets_path is None:
        secrets_path = settings_path.with_name(SECRETS_FILE.name)

    settings_data = _load_yaml(settings_path)
    secrets_data  = _load_yaml(Path(secrets_path))

    # Merge: secrets live under the "secrets" key in AppConfig
    settings_data["secrets"] = secrets_data

    config = AppConfig(**settings_data)
    config.storage = config.storage.resolve(_base_dir_for(settings_path))

    logger.info(
        "Settings loaded (server=%s:%s, data_dir=%s, guest_limit=%d, cleanup.enabled=%s)",
        config.server.host,
        config.server.port,
        config.storage.data_dir,
        config.quota.guest_daily_limit,
        config.cleanup.enabled,
    )
    return config


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]) -> None:
    """Replace (or clear) the process-wide config."""
    global _config
    _config = config
