"""ConversionService — DuckDB-backed conversion history."""
import logging
from datetime import datetime
from typing import List, Optional

from app.database import GUEST_USER_ID, Database
from app.synthesis.schemas import VoiceSettings

from .schemas import TTSConversion

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, guest_key, source_file_id, text_content, "
    "audio_file_path, voice_settings, language, created_at"
)


def start_of_day(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the day containing *now*."""
    now = now or datetime.now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class ConversionService:
    """CRUD and per-day queries over ``tts_conversions``."""

    _instance: Optional["ConversionService"] = None

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db = db

    @classmethod
    def get_instance(cls) -> "ConversionService":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    @property
    def db(self) -> Database:
        return self._db or Database.get_instance()

    # -----------------------------------------------------------------------
    # CRUD
    # -----------------------------------------------------------------------

    def create_conversion(
        self,
        user_id: int,
        text_content: str,
        audio_file_path: Optional[str],
        voice_settings: VoiceSettings,
        language: str = "en",
        source_file_id: Optional[int] = None,
        guest_key: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> TTSConversion:
        row = self.db.fetchone(
            f"""
            INSERT INTO tts_conversions
              (user_id, guest_key, source_file_id, text_content,
               audio_file_path, voice_settings, language, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING {_COLUMNS}
            """,
            [
                user_id, guest_key, source_file_id, text_content,
                audio_file_path, voice_settings.model_dump_json(by_alias=True),
                language, created_at or datetime.now(),
            ],
        )
        return self._row_to_conversion(row)

    def set_audio_path(
        self, conversion_id: int, audio_file_path: str
    ) -> Optional[TTSConversion]:
        """Attach the generated audio to a reserved conversion row."""
        row = self.db.fetchone(
            f"""
            UPDATE tts_conversions SET audio_file_path = ?
            WHERE id = ?
            RETURNING {_COLUMNS}
            """,
            [audio_file_path, conversion_id],
        )
        return self._row_to_conversion(row) if row else None

    def get_conversion(self, conversion_id: int) -> Optional[TTSConversion]:
        row = self.db.fetchone(
            f"SELECT {_COLUMNS} FROM tts_conversions WHERE id = ?", [conversion_id]
        )
        return self._row_to_conversion(row) if row else None

    def list_by_user(self, user_id: int) -> List[TTSConversion]:
        rows = self.db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM tts_conversions
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            """,
            [user_id],
        )
        return [self._row_to_conversion(r) for r in rows]

    def list_by_user_today(
        self, user_id: int, now: Optional[datetime] = None
    ) -> List[TTSConversion]:
        rows = self.db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM tts_conversions
            WHERE user_id = ? AND created_at >= ?
            ORDER BY created_at ASC, id ASC
            """,
            [user_id, start_of_day(now)],
        )
        return [self._row_to_conversion(r) for r in rows]

    def count_guest_today(
        self, guest_key: Optional[str] = None, now: Optional[datetime] = None
    ) -> int:
        """Count guest conversions since local midnight.

        Without a *guest_key* every guest shares one pool.
        """
        sql = "SELECT COUNT(*) FROM tts_conversions WHERE user_id = ? AND created_at >= ?"
        params = [GUEST_USER_ID, start_of_day(now)]
        if guest_key is not None:
            sql += " AND guest_key = ?"
            params.append(guest_key)
        return self.db.fetchone(sql, params)[0]

    def list_guest_by_source_file(self, file_id: int) -> List[TTSConversion]:
        rows = self.db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM tts_conversions
            WHERE user_id = ? AND source_file_id = ?
            """,
            [GUEST_USER_ID, file_id],
        )
        return [self._row_to_conversion(r) for r in rows]

    def delete_guest_by_source_file(self, file_id: int) -> int:
        result = self.db.fetchall(
            """
            DELETE FROM tts_conversions
            WHERE user_id = ? AND source_file_id = ?
            RETURNING id
            """,
            [GUEST_USER_ID, file_id],
        )
        return len(result)

    def detach_source_file(self, file_id: int) -> None:
        """Clear the back-reference of every conversion made from *file_id*."""
        self.db.execute(
            "UPDATE tts_conversions SET source_file_id = NULL WHERE source_file_id = ?",
            [file_id],
        )

    def delete_conversion(self, conversion_id: int) -> bool:
        result = self.db.fetchone(
            "DELETE FROM tts_conversions WHERE id = ? RETURNING id", [conversion_id]
        )
        return result is not None

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    @staticmethod
    def _row_to_conversion(row) -> TTSConversion:
        return TTSConversion(
            id=row[0],
            user_id=row[1],
            guest_key=row[2],
            source_file_id=row[3],
            text_content=row[4],
            audio_file_path=row[5],
            voice_settings=VoiceSettings.model_validate_json(row[6]),
            language=row[7],
            created_at=row[8],
        )
