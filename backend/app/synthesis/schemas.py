"""Pydantic schemas for text-to-speech synthesis."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

VoiceType = Literal["male1", "female1", "male2", "female2"]


class VoiceSettings(BaseModel):
    """Voice preferences recorded with every conversion.

    The values are validated and persisted but the synthesis backend only
    honours the language, so speed, pitch and voice type do not change the
    generated audio.
    """
    model_config = ConfigDict(populate_by_name=True)

    speed: float = Field(default=1.0, ge=0.5, le=1.5)
    pitch: float = Field(default=0.5, ge=0.1, le=0.9)
    voice_type: VoiceType = Field(default="male1", alias="voiceType")
