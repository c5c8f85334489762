"""Recurring sweep of expired guest uploads.

Guest files older than ``max_age`` are removed together with the guest
conversions made from them. The sweep task is owned by the application
lifespan: started on startup, cancelled on shutdown.

All deletes are idempotent, so a duplicate sweep (a second instance, or a
manual run overlapping the timer) only finds less work to do.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from app.conversions.service import ConversionService
from app.files.schemas import UploadedFile
from app.files.service import FileStorageService
from app.synthesis.service import Synthesizer

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """Deletes guest files, their conversions and audio after *max_age*."""

    def __init__(
        self,
        files: FileStorageService,
        conversions: ConversionService,
        synthesizer: Synthesizer,
        interval_seconds: int = 24 * 60 * 60,
        max_age: timedelta = timedelta(hours=24),
    ) -> None:
        self._files = files
        self._conversions = conversions
        self._synthesizer = synthesizer
        self._interval = interval_seconds
        self._max_age = max_age
        self._sweep_task: Optional[asyncio.Task] = None  # type: ignore[type-arg]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self) -> None:
        """Start background sweep task."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info(
            "CleanupSweeper started (interval=%ss, max_age=%s)", self._interval, self._max_age
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        logger.info("CleanupSweeper stopped")

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.sweep_once()

    def sweep_once(self, now: Optional[datetime] = None) -> int:
        """Remove every expired guest file.

        Returns:
            Number of guest files removed in this run.
        """
        cutoff = (now or datetime.now()) - self._max_age
        try:
            expired = self._files.list_guest_files_older_than(cutoff)
        except Exception as e:
            logger.error("Database error during cleanup: %s", e)
            return 0

        removed = 0
        for uploaded in expired:
            try:
                self._remove_guest_file(uploaded)
                removed += 1
            except Exception as e:
                logger.error("Error cleaning up guest file %s: %s", uploaded.id, e)

        if expired:
            logger.info("Cleanup sweep: removed %d of %d expired guest files", removed, len(expired))
        return removed

    def _remove_guest_file(self, uploaded: UploadedFile) -> None:
        self._files.delete_file_bytes(uploaded.file_path)

        for conversion in self._conversions.list_guest_by_source_file(uploaded.id):
            audio_path = self._synthesizer.resolve_audio_path(conversion.audio_file_path)
            if audio_path is None:
                continue
            try:
                audio_path.unlink(missing_ok=True)
            except OSError as e:
                logger.error("Failed to delete audio file %s: %s", audio_path, e)

        self._conversions.delete_guest_by_source_file(uploaded.id)
        self._files.delete_uploaded_file(uploaded.id)
