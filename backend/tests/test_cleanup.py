"""Tests for the guest cleanup sweeper."""
import asyncio
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from app.cleanup.sweeper import CleanupSweeper
from app.conversions.service import ConversionService
from app.database import GUEST_USER_ID
from app.extraction.schemas import FileType
from app.files.service import FileStorageService
from app.synthesis.schemas import VoiceSettings
from app.synthesis.service import Synthesizer

NOW = datetime(2026, 5, 2, 12, 0)


@pytest.fixture
def files(test_config):
    return FileStorageService(test_config.storage.upload_dir)


@pytest.fixture
def conversions(test_config):
    return ConversionService()


@pytest.fixture
def synthesizer(test_config):
    return Synthesizer(audio_dir=test_config.storage.audio_dir)


@pytest.fixture
def sweeper(files, conversions, synthesizer):
    return CleanupSweeper(files, conversions, synthesizer, interval_seconds=3600)


def _upload(files, user_id, age):
    path = files.save_bytes("doc.txt", b"Hello world")
    return files.create_uploaded_file(
        user_id=user_id,
        file_path=str(path),
        file_name="doc.txt",
        file_type=FileType.TXT,
        extracted_text="Hello world",
        processed=True,
        upload_date=NOW - age,
    )


def _convert(conversions, synthesizer, user_id, source_file_id):
    synthesizer.audio_dir.mkdir(parents=True, exist_ok=True)
    audio = synthesizer.audio_dir / f"{source_file_id}-{user_id}.mp3"
    audio.write_bytes(b"ID3")
    conversion = conversions.create_conversion(
        user_id=user_id,
        text_content="Hello world",
        audio_file_path=f"/api/audio/{audio.name}",
        voice_settings=VoiceSettings(),
        source_file_id=source_file_id,
        created_at=NOW,
    )
    return conversion, audio


class TestSweepOnce:
    def test_removes_expired_guest_file_and_conversions(self, sweeper, files, conversions, synthesizer):
        old = _upload(files, GUEST_USER_ID, timedelta(hours=25))
        conversion, audio = _convert(conversions, synthesizer, GUEST_USER_ID, old.id)

        assert sweeper.sweep_once(now=NOW) == 1

        assert files.get_uploaded_file(old.id) is None
        assert not Path(old.file_path).exists()
        assert conversions.get_conversion(conversion.id) is None
        assert not audio.exists()

    def test_keeps_recent_guest_file(self, sweeper, files, conversions, synthesizer):
        recent = _upload(files, GUEST_USER_ID, timedelta(hours=1))
        conversion, audio = _convert(conversions, synthesizer, GUEST_USER_ID, recent.id)

        assert sweeper.sweep_once(now=NOW) == 0

        assert files.get_uploaded_file(recent.id) is not None
        assert Path(recent.file_path).exists()
        assert conversions.get_conversion(conversion.id) is not None
        assert audio.exists()

    def test_mixed_run_only_touches_expired(self, sweeper, files):
        old = _upload(files, GUEST_USER_ID, timedelta(hours=25))
        recent = _upload(files, GUEST_USER_ID, timedelta(hours=1))

        sweeper.sweep_once(now=NOW)

        assert files.get_uploaded_file(old.id) is None
        assert files.get_uploaded_file(recent.id) is not None

    def test_ignores_registered_users_files(self, sweeper, files):
        owned = _upload(files, 42, timedelta(days=10))

        assert sweeper.sweep_once(now=NOW) == 0
        assert files.get_uploaded_file(owned.id) is not None

    def test_missing_bytes_still_remove_row(self, sweeper, files):
        old = _upload(files, GUEST_USER_ID, timedelta(hours=30))
        Path(old.file_path).unlink()

        assert sweeper.sweep_once(now=NOW) == 1
        assert files.get_uploaded_file(old.id) is None

    def test_audio_delete_error_is_logged_not_raised(self, sweeper, files, conversions, synthesizer):
        old = _upload(files, GUEST_USER_ID, timedelta(hours=25))
        conversion, _ = _convert(conversions, synthesizer, GUEST_USER_ID, old.id)

        with patch.object(Path, "unlink", autospec=True) as mock_unlink:
            def _unlink(path, missing_ok=False):
                if path.suffix == ".mp3":
                    raise PermissionError("read-only")
            mock_unlink.side_effect = _unlink
            assert sweeper.sweep_once(now=NOW) == 1

        assert conversions.get_conversion(conversion.id) is None
        assert files.get_uploaded_file(old.id) is None

    def test_per_file_failure_does_not_abort_sweep(self, sweeper, files):
        first = _upload(files, GUEST_USER_ID, timedelta(hours=48))
        second = _upload(files, GUEST_USER_ID, timedelta(hours=26))

        original = files.delete_file_bytes

        def _flaky(path):
            if path == first.file_path:
                raise OSError("disk error")
            original(path)

        with patch.object(files, "delete_file_bytes", side_effect=_flaky):
            assert sweeper.sweep_once(now=NOW) == 1

        assert files.get_uploaded_file(first.id) is not None
        assert files.get_uploaded_file(second.id) is None

    def test_repeated_sweep_is_idempotent(self, sweeper, files):
        _upload(files, GUEST_USER_ID, timedelta(hours=25))

        assert sweeper.sweep_once(now=NOW) == 1
        assert sweeper.sweep_once(now=NOW) == 0


class TestLifecycle:
    def test_start_and_stop(self, sweeper):
        async def _run():
            await sweeper.start()
            assert sweeper.running
            await sweeper.stop()
            assert not sweeper.running

        asyncio.run(_run())

    def test_loop_sweeps_each_interval(self, files, conversions, synthesizer):
        sweeper = CleanupSweeper(files, conversions, synthesizer, interval_seconds=0)

        async def _run():
            with patch.object(sweeper, "sweep_once") as mock_sweep:
                await sweeper.start()
                await asyncio.sleep(0.05)
                await sweeper.stop()
            return mock_sweep.call_count

        assert asyncio.run(_run()) >= 1
