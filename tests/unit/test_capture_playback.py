"""Unit tests for the speech capture and audio channel collaborators."""

import asyncio
import threading

import pytest

from newsight.app.capture import (
    CAPTURE_GUIDANCE,
    CaptureError,
    CaptureErrorCode,
    ConsoleCapture,
    SpeechCapture,
    Transcript,
    to_capture_error,
)
from newsight.app.playback import (
    AudioChannel,
    FileAudioChannel,
    PlaybackDone,
    PlaybackError,
    SilentAudioChannel,
)
from newsight.errors import RecognitionError


def _raiser(code):
    def reader():
        raise RecognitionError(code, "recogniser failed")
    return reader


class TestCapture:
    @pytest.mark.asyncio
    async def test_transcript_is_stripped(self):
        result = await ConsoleCapture(reader=lambda: "  make it bigger \n").listen()
        assert result == Transcript("make it bigger")

    @pytest.mark.asyncio
    async def test_blank_line_is_no_speech(self):
        result = await ConsoleCapture(reader=lambda: "   \n").listen()
        assert isinstance(result, CaptureError)
        assert result.code == CaptureErrorCode.NO_SPEECH

    @pytest.mark.asyncio
    async def test_recogniser_error_becomes_capture_error(self):
        capture = ConsoleCapture(reader=_raiser("network"))
        result = await capture.listen()
        assert result.code == CaptureErrorCode.NETWORK
        assert result.guidance == CAPTURE_GUIDANCE[CaptureErrorCode.NETWORK]
        assert not capture.active

    @pytest.mark.parametrize("code,expected", [
        ("not-allowed", CaptureErrorCode.PERMISSION_DENIED),
        ("service-not-allowed", CaptureErrorCode.PERMISSION_DENIED),
        ("no-speech", CaptureErrorCode.NO_SPEECH),
        ("aborted", CaptureErrorCode.OTHER),
    ])
    def test_code_mapping(self, code, expected):
        assert to_capture_error(RecognitionError(code)).code == expected

    def test_guidance_mentions_microphone(self):
        err = CaptureError(CaptureErrorCode.PERMISSION_DENIED)
        assert "Microphone access denied" in err.guidance


class _HeldCapture(SpeechCapture):
    """Capture that blocks until released, tracking how many run at once."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()
        self.running = 0
        self.peak = 0

    async def _capture(self) -> str:
        self.running += 1
        self.peak = max(self.peak, self.running)
        try:
            await self.release.wait()
            return "yes"
        finally:
            self.running -= 1


class TestCaptureStop:
    @pytest.mark.asyncio
    async def test_stop_cancels_pending_capture(self):
        capture = _HeldCapture()
        first = asyncio.ensure_future(capture.listen())
        while capture.running == 0:
            await asyncio.sleep(0)

        capture.stop()
        assert not capture.active
        second = asyncio.ensure_future(capture.listen())
        await asyncio.sleep(0)
        capture.release.set()

        stopped = await first
        assert isinstance(stopped, CaptureError)
        assert stopped.code == CaptureErrorCode.OTHER
        assert await second == Transcript("yes")
        assert capture.peak == 1

    @pytest.mark.asyncio
    async def test_stop_when_idle_is_noop(self):
        capture = _HeldCapture()
        capture.stop()
        assert not capture.active

    @pytest.mark.asyncio
    async def test_console_read_abandoned_by_stop_is_reused(self):
        line_ready = threading.Event()
        reads = []

        def reader():
            reads.append(1)
            line_ready.wait(5)
            return "yes\n"

        capture = ConsoleCapture(reader=reader)
        first = asyncio.ensure_future(capture.listen())
        while not reads:
            await asyncio.sleep(0.01)

        capture.stop()
        second = asyncio.ensure_future(capture.listen())
        await asyncio.sleep(0.01)
        line_ready.set()

        assert (await first).code == CaptureErrorCode.OTHER
        assert await second == Transcript("yes")
        assert len(reads) == 1


class _BrokenChannel(AudioChannel):
    async def _render(self, audio: bytes) -> None:
        raise OSError("device busy")


class TestAudioChannel:
    @pytest.mark.asyncio
    async def test_play_completes(self):
        channel = SilentAudioChannel()
        result = await channel.play(b"clip")
        assert isinstance(result, PlaybackDone)
        assert not result.interrupted
        assert channel.played == [b"clip"]
        assert not channel.is_playing

    @pytest.mark.asyncio
    async def test_stop_interrupts(self):
        channel = SilentAudioChannel(simulate_secs=10)
        pending = asyncio.ensure_future(channel.play(b"long clip"))
        while not channel.is_playing:
            await asyncio.sleep(0)

        assert channel.stop() is True
        result = await pending
        assert result.interrupted is True
        assert channel.stop() is False

    @pytest.mark.asyncio
    async def test_render_failure_is_playback_error(self):
        result = await _BrokenChannel().play(b"clip")
        assert isinstance(result, PlaybackError)
        assert "device busy" in result.reason

    @pytest.mark.asyncio
    async def test_file_channel_writes_numbered_clips(self, tmp_path):
        channel = FileAudioChannel(tmp_path / "clips")
        await channel.play(b"first")
        await channel.play(b"second")
        assert (tmp_path / "clips" / "clip_0001.mp3").read_bytes() == b"first"
        assert (tmp_path / "clips" / "clip_0002.mp3").read_bytes() == b"second"
