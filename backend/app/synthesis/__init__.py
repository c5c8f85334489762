"""Text-to-speech module."""

from .schemas import VoiceSettings
from .service import SynthesisError, Synthesizer, get_synthesizer, set_synthesizer

__all__ = [
    "SynthesisError",
    "Synthesizer",
    "VoiceSettings",
    "get_synthesizer",
    "set_synthesizer",
]
