"""File storage service for VoiceDoc.

Handles upload bytes on disk and metadata rows in the ``uploaded_files``
table. Files are stored in: <upload_dir>/<epoch-ms>-<uuid4>.<ext>
"""
import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from app.database import GUEST_USER_ID, Database
from app.extraction.schemas import FileType

from .schemas import UploadedFile

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, guest_key, file_path, file_name, file_type, "
    "extracted_text, processed, upload_date"
)


class FileStorageService:
    """Service for managing uploaded files and their metadata."""

    _instance: Optional["FileStorageService"] = None

    def __init__(self, upload_dir: str, db: Optional[Database] = None) -> None:
        """Initialize the file storage service."""
        self._upload_dir = Path(upload_dir)
        self._db = db
        self._ensure_upload_dir()

    @classmethod
    def get_instance(cls) -> "FileStorageService":
        """Get or create the singleton instance."""
        if cls._instance is None:
            from app.config import get_config
            cls._instance = cls(get_config().storage.upload_dir)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    @property
    def db(self) -> Database:
        return self._db or Database.get_instance()

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def _ensure_upload_dir(self) -> None:
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    # -----------------------------------------------------------------------
    # Disk
    # -----------------------------------------------------------------------

    def save_bytes(self, filename: str, content: bytes) -> Path:
        """Write upload bytes under a collision-resistant generated name."""
        ext = Path(filename).suffix.lower()
        stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4()}{ext}"
        self._ensure_upload_dir()
        file_path = self._upload_dir / stored_name
        file_path.write_bytes(content)
        logger.info(f"Saved file: {file_path} ({len(content)} bytes)")
        return file_path

    @staticmethod
    def delete_file_bytes(file_path: str) -> None:
        """Remove stored bytes; a file that is already gone is not an error."""
        Path(file_path).unlink(missing_ok=True)

    # -----------------------------------------------------------------------
    # Metadata
    # -----------------------------------------------------------------------

    def create_uploaded_file(
        self,
        user_id: int,
        file_path: str,
        file_name: str,
        file_type: FileType,
        extracted_text: Optional[str] = None,
        guest_key: Optional[str] = None,
        processed: bool = False,
        upload_date: Optional[datetime] = None,
    ) -> UploadedFile:
        row = self.db.fetchone(
            f"""
            INSERT INTO uploaded_files
              (user_id, guest_key, file_path, file_name, file_type,
               extracted_text, processed, upload_date)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING {_COLUMNS}
            """,
            [
                user_id, guest_key, file_path, file_name, file_type.value,
                extracted_text, processed, upload_date or datetime.now(),
            ],
        )
        return self._row_to_file(row)

    def get_uploaded_file(self, file_id: int) -> Optional[UploadedFile]:
        row = self.db.fetchone(
            f"SELECT {_COLUMNS} FROM uploaded_files WHERE id = ?", [file_id]
        )
        return self._row_to_file(row) if row else None

    def list_by_user(self, user_id: int) -> List[UploadedFile]:
        rows = self.db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM uploaded_files
            WHERE user_id = ?
            ORDER BY upload_date DESC, id DESC
            """,
            [user_id],
        )
        return [self._row_to_file(r) for r in rows]

    def list_guest_files_older_than(self, cutoff: datetime) -> List[UploadedFile]:
        rows = self.db.fetchall(
            f"""
            SELECT {_COLUMNS} FROM uploaded_files
            WHERE user_id = ? AND upload_date < ?
            ORDER BY upload_date ASC, id ASC
            """,
            [GUEST_USER_ID, cutoff],
        )
        return [self._row_to_file(r) for r in rows]

    def delete_uploaded_file(self, file_id: int) -> bool:
        """Delete a metadata row. Deleting a missing row returns False."""
        result = self.db.fetchone(
            "DELETE FROM uploaded_files WHERE id = ? RETURNING id", [file_id]
        )
        return result is not None

    @staticmethod
    def _row_to_file(row) -> UploadedFile:
        return UploadedFile(
            id=row[0],
            user_id=row[1],
            guest_key=row[2],
            file_path=row[3],
            file_name=row[4],
            file_type=FileType(row[5]),
            extracted_text=row[6],
            processed=row[7],
            upload_date=row[8],
        )
