"""Pydantic schemas for text-to-speech conversions."""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.synthesis.schemas import VoiceSettings


class TTSConversion(BaseModel):
    """Full conversion record stored in ``tts_conversions``.

    Only the audio path of a reserved guest row is filled in after creation;
    otherwise rows are only deleted.
    """
    id: int
    user_id: int
    guest_key: Optional[str] = None
    source_file_id: Optional[int] = None
    text_content: str
    audio_file_path: Optional[str] = None
    voice_settings: VoiceSettings
    language: str = "en"
    created_at: datetime

    def to_created(self) -> dict:
        return {
            "id": self.id,
            "textContent": self.text_content,
            "audioUrl": self.audio_file_path,
            "createdAt": self.created_at.isoformat(),
        }

    def to_history_item(self) -> dict:
        text = self.text_content
        return {
            "id": self.id,
            "textContent": text[:100] + ("..." if len(text) > 100 else ""),
            "audioUrl": self.audio_file_path,
            "language": self.language,
            "createdAt": self.created_at.isoformat(),
        }


class ConvertRequest(BaseModel):
    """Request body for POST /api/convert.

    Fields are loosely typed on purpose: text and voice settings are checked
    inside the handler, after the guest quota, so each failure maps to its
    own status code.
    """
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    voice_settings: Optional[Dict[str, Any]] = Field(default=None, alias="voiceSettings")
    language: Optional[str] = None
    file_id: Optional[int] = Field(default=None, alias="fileId")
