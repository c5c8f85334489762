"""DuckDB storage shared by every VoiceDoc service.

One embedded DuckDB file holds the four relational tables. The connection
is owned by a process-wide singleton so the user, file, conversion and
preset services all read and write the same database.

Database Schema:
    users:            accounts, preference flags and the credit counter
    uploaded_files:   uploaded document metadata and extracted text
    tts_conversions:  generated audio records with embedded voice settings
    text_presets:     saved text snippets for registered users

Guests own rows through the sentinel user id ``GUEST_USER_ID``. The
``guest_key`` column optionally narrows guest rows to one client.

Thread Safety:
    The DuckDB connection is NOT thread-safe. All queries are issued from the
    event loop thread; blocking OCR and TTS work never touches the database.

Usage:
    db = Database.get_instance()
    row = db.fetchone("SELECT * FROM users WHERE id = ?", [1])
"""
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

import duckdb

logger = logging.getLogger(__name__)

GUEST_USER_ID = 0

_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS users_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS uploaded_files_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS tts_conversions_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS text_presets_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS users (
        id          INTEGER DEFAULT nextval('users_seq') PRIMARY KEY,
        username    VARCHAR NOT NULL UNIQUE,
        password    VARCHAR NOT NULL,
        email       VARCHAR,
        dark_mode   BOOLEAN NOT NULL DEFAULT FALSE,
        tts_credits INTEGER NOT NULL DEFAULT 100,
        created_at  TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS uploaded_files (
        id             INTEGER DEFAULT nextval('uploaded_files_seq') PRIMARY KEY,
        user_id        INTEGER NOT NULL,
        guest_key      VARCHAR,
        file_path      VARCHAR NOT NULL,
        file_name      VARCHAR NOT NULL,
        file_type      VARCHAR NOT NULL,
        extracted_text VARCHAR,
        processed      BOOLEAN NOT NULL DEFAULT FALSE,
        upload_date    TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tts_conversions (
        id              INTEGER DEFAULT nextval('tts_conversions_seq') PRIMARY KEY,
        user_id         INTEGER NOT NULL,
        guest_key       VARCHAR,
        source_file_id  INTEGER,
        text_content    VARCHAR NOT NULL,
        audio_file_path VARCHAR,
        voice_settings  VARCHAR NOT NULL,
        language        VARCHAR NOT NULL DEFAULT 'en',
        created_at      TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS text_presets (
        id         INTEGER DEFAULT nextval('text_presets_seq') PRIMARY KEY,
        user_id    INTEGER NOT NULL,
        name       VARCHAR NOT NULL,
        content    VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_files_user ON uploaded_files(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_conversions_user ON tts_conversions(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_presets_user ON text_presets(user_id)",
]


class Database:
    """Singleton wrapper around the shared DuckDB connection.

    Attributes:
        _instance: Singleton instance.
        _db_path: Path to the DuckDB database file.
    """

    _instance: Optional["Database"] = None
    _db_path: str = "voicedoc.duckdb"

    def __init__(self, db_path: Optional[str] = None) -> None:
        if db_path:
            self._db_path = db_path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._initialize_db()
        logger.info("[Database] Initialized with db=%s", self._db_path)

    @classmethod
    def get_instance(cls, db_path: Optional[str] = None) -> "Database":
        """Get or create the singleton instance.

        When no path is given the configured ``storage.db_path`` is used.
        """
        if cls._instance is None:
            if db_path is None:
                from app.config import get_config
                db_path = get_config().storage.db_path
            cls._instance = cls(db_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Close the connection and clear the singleton (for testing)."""
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._connection = duckdb.connect(self._db_path)
        return self._connection

    def _initialize_db(self) -> None:
        """Create sequences, tables and indexes. Safe to call repeatedly."""
        conn = self._get_connection()
        for statement in _SCHEMA:
            conn.execute(statement)

    # -----------------------------------------------------------------------
    # Query helpers
    # -----------------------------------------------------------------------

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self._get_connection().execute(sql, list(params))

    def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[tuple]:
        return self._get_connection().execute(sql, list(params)).fetchone()

    def fetchall(self, sql: str, params: Sequence[Any] = ()) -> List[tuple]:
        return self._get_connection().execute(sql, list(params)).fetchall()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
