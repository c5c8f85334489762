"""Pydantic schemas for saved text presets."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PresetCreate(BaseModel):
    """Request body for creating a preset."""
    name: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)


class PresetUpdate(BaseModel):
    """Request body for updating a preset (all fields optional)."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)


class TextPreset(BaseModel):
    """Full preset record returned by the API."""
    id: int
    user_id: int
    name: str
    content: str
    created_at: datetime

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
        }
