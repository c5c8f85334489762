"""Pydantic schemas for accounts and authentication."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Full user record as stored in the ``users`` table."""
    id: int
    username: str
    password: str = Field(..., description="Password hash")
    email: Optional[str] = None
    dark_mode: bool = False
    tts_credits: int = 100
    created_at: datetime

    def to_public(self) -> dict:
        """User shape returned by the API (never includes the hash)."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "darkMode": self.dark_mode,
            "ttsCredits": self.tts_credits,
            "createdAt": self.created_at.isoformat(),
        }


class RegisterRequest(BaseModel):
    """Request body for creating an account."""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    email: Optional[str] = Field(default=None, max_length=320)


class LoginRequest(BaseModel):
    """Request body for logging in."""
    username: str
    password: str


class UserSettingsUpdate(BaseModel):
    """Request body for updating account settings (all fields optional)."""
    model_config = ConfigDict(populate_by_name=True)

    dark_mode: Optional[bool] = Field(default=None, alias="darkMode")
    email: Optional[str] = Field(default=None, max_length=320)
