"""PresetService — DuckDB-backed text presets for registered users."""
import logging
from datetime import datetime
from typing import List, Optional

from app.database import Database

from .schemas import TextPreset

logger = logging.getLogger(__name__)

_COLUMNS = "id, user_id, name, content, created_at"


class PresetService:
    """Singleton CRUD service over ``text_presets``."""

    _instance: Optional["PresetService"] = None

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db = db

    @classmethod
    def get_instance(cls) -> "PresetService":
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

    def create(self, user_id: int, name: str, content: str) -> TextPreset:
        row = self.db.fetchone(
            f"""
            INSERT INTO text_presets (user_id, name, content, created_at)
            VALUES (?, ?, ?, ?)
            RETURNING {_COLUMNS}
            """,
            [user_id, name, content, datetime.now()],
        )
        return self._row_to_preset(row)

    def get(self, preset_id: int) -> Optional[TextPreset]:
        row = self.db.fetchone(
            f"SELECT {_COLUMNS} FROM text_presets WHERE id = ?", [preset_id]
        )
        return self._row_to_preset(row) if row else None

    def list_by_user(self, user_id: int) -> List[TextPreset]:
        rows = self.db.fetchall(
            f"SELECT {_COLUMNS} FROM text_presets WHERE user_id = ? ORDER BY created_at ASC, id ASC",
            [user_id],
        )
        return [self._row_to_preset(r) for r in rows]

    def update(self, preset_id: int, **kwargs) -> Optional[TextPreset]:
        allowed = {"name", "content"}
        fields = {k: v for k, v in kwargs.items() if k in allowed and v is not None}
        if not fields:
            return self.get(preset_id)

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        values = list(fields.values()) + [preset_id]
        self.db.execute(f"UPDATE text_presets SET {set_clause} WHERE id = ?", values)
        return self.get(preset_id)

    def delete(self, preset_id: int) -> bool:
        result = self.db.fetchone(
            "DELETE FROM text_presets WHERE id = ? RETURNING id", [preset_id]
        )
        return result is not None

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    @staticmethod
    def _row_to_preset(row) -> TextPreset:
        return TextPreset(
            id=row[0],
            user_id=row[1],
            name=row[2],
            content=row[3],
            created_at=row[4],
        )
