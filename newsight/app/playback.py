"""
NewSight — Exclusive Audio Channel

One channel per session.  Starting playback stops whatever is playing;
stop() is synchronous and cancels the pending render immediately.

play() is awaited and resolves to PlaybackDone or PlaybackError; it never
raises for render failures, so the turn controller can treat a playback
error exactly like a synthesis fallback.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackDone:
    interrupted: bool = False
    elapsed_ms: float = 0.0


@dataclass(frozen=True)
class PlaybackError:
    reason: str


PlaybackResult = Union[PlaybackDone, PlaybackError]


class AudioChannel(ABC):
    """Base exclusive channel.  Subclasses implement _render()."""

    def __init__(self):
        self._task: Optional[asyncio.Task] = None

    @property
    def is_playing(self) -> bool:
        return self._task is not None and not self._task.done()

    async def play(self, audio: bytes) -> PlaybackResult:
        self.stop()
        t0 = time.monotonic()
        task = asyncio.ensure_future(self._render(audio))
        self._task = task
        await asyncio.wait({task})
        if self._task is task:
            self._task = None
        elapsed_ms = round((time.monotonic() - t0) * 1000, 1)

        if task.cancelled():
            return PlaybackDone(interrupted=True, elapsed_ms=elapsed_ms)
        exc = task.exception()
        if exc is not None:
            logger.warning("playback: render failed  error=%s", exc)
            return PlaybackError(str(exc) or type(exc).__name__)
        return PlaybackDone(elapsed_ms=elapsed_ms)

    def stop(self) -> bool:
        """Cancel active playback.  Returns True if something was playing."""
        if not self.is_playing:
            return False
        self._task.cancel()
        logger.info("playback: stopped")
        return True

    @abstractmethod
    async def _render(self, audio: bytes) -> None:
        """Play *audio* to completion."""


class SilentAudioChannel(AudioChannel):
    """Discards audio after an optional simulated duration; keeps a history."""

    def __init__(self, simulate_secs: float = 0.0):
        super().__init__()
        self.simulate_secs = simulate_secs
        self.played: List[bytes] = []

    async def _render(self, audio: bytes) -> None:
        self.played.append(audio)
        await asyncio.sleep(self.simulate_secs)


class FileAudioChannel(AudioChannel):
    """Writes each clip to *directory* as a numbered .mp3 file."""

    def __init__(self, directory: Union[str, Path]):
        super().__init__()
        self.directory = Path(directory)
        self._count = 0

    async def _render(self, audio: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._count += 1
        path = self.directory / f"clip_{self._count:04d}.mp3"
        await asyncio.to_thread(path.write_bytes, audio)
        logger.info("playback: clip written  path=%s  bytes=%d", path, len(audio))
