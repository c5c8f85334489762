"""gTTS-backed speech synthesis.

Audio files are written to the configured audio directory under
``<epoch-ms>-<uuid4>.mp3`` and referenced by URL (``/api/audio/<name>``).
Identical text converted twice produces two independent files.
"""
import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Optional

from gtts import gTTS

from .schemas import VoiceSettings

logger = logging.getLogger(__name__)


class SynthesisError(Exception):
    """Raised when the TTS backend fails to produce audio."""


class Synthesizer:
    """Converts text to MP3 files on disk."""

    def __init__(
        self,
        audio_dir: str,
        url_prefix: str = "/api/audio",
        tld: str = "com",
    ) -> None:
        self._audio_dir = Path(audio_dir)
        self._url_prefix = url_prefix.rstrip("/")
        self._tld = tld

    @property
    def audio_dir(self) -> Path:
        return self._audio_dir

    def synthesize(
        self,
        text: str,
        language: str = "en",
        voice_settings: Optional[VoiceSettings] = None,
        is_guest: bool = False,
    ) -> str:
        """Generate an MP3 narration of *text*.

        ``voice_settings`` and ``is_guest`` are accepted for the record but
        not applied: no speed/pitch transform and no guest watermark.

        Returns:
            The audio URL, e.g. ``/api/audio/1700000000000-<uuid>.mp3``.

        Raises:
            SynthesisError: If the backend fails.
        """
        filename = f"{int(time.time() * 1000)}-{uuid.uuid4()}.mp3"
        audio_path = self._audio_dir / filename
        try:
            self._audio_dir.mkdir(parents=True, exist_ok=True)
            tts = gTTS(text=text, lang=language or "en", tld=self._tld)
            tts.save(str(audio_path))
        except Exception as e:
            logger.error("TTS conversion error: %s", e)
            raise SynthesisError(f"Failed to convert text to speech: {e}") from e

        logger.info("Generated audio %s (%d chars, lang=%s)", filename, len(text), language)
        return f"{self._url_prefix}/{filename}"

    async def synthesize_async(
        self,
        text: str,
        language: str = "en",
        voice_settings: Optional[VoiceSettings] = None,
        is_guest: bool = False,
    ) -> str:
        """Run :meth:`synthesize` in the default executor."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self.synthesize, text, language, voice_settings, is_guest
        )

    def resolve_audio_path(self, audio_url: Optional[str]) -> Optional[Path]:
        """Map a stored audio URL back to its file in the audio directory."""
        if not audio_url:
            return None
        filename = audio_url.rsplit("/", 1)[-1]
        if not filename or filename in (".", ".."):
            return None
        return self._audio_dir / filename


_synthesizer: Optional[Synthesizer] = None


def get_synthesizer() -> Synthesizer:
    """Return the process-wide synthesizer, built from config on first use."""
    global _synthesizer
    if _synthesizer is None:
        from app.config import get_config
        config = get_config()
        _synthesizer = Synthesizer(
            audio_dir=config.storage.audio_dir,
            url_prefix=config.tts.audio_url_prefix,
            tld=config.tts.tld,
        )
    return _synthesizer


def set_synthesizer(synthesizer: Optional[Synthesizer]) -> None:
    """Set (or clear) the process-wide synthesizer."""
    global _synthesizer
    _synthesizer = synthesizer
