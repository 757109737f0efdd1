"""
NewSight — Speech Capture Collaborator

listen() is awaited and resolves to exactly one of:
    - Transcript(text)
    - CaptureError(code)

The dialogue never sees a RecognitionError: implementations that raise one
are wrapped by SpeechCapture.listen().
"""

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from newsight.errors import RecognitionError

logger = logging.getLogger(__name__)


class CaptureErrorCode(str, Enum):
    NO_SPEECH = "no-speech"
    PERMISSION_DENIED = "permission-denied"
    NETWORK = "network"
    OTHER = "other"


CAPTURE_GUIDANCE = {
    CaptureErrorCode.NO_SPEECH: (
        "No speech detected. Please check your microphone connection and "
        "ensure microphone permissions are granted. Try speaking closer to "
        "your microphone."
    ),
    CaptureErrorCode.PERMISSION_DENIED: (
        "Microphone access denied. Please allow microphone permissions "
        "and try again."
    ),
    CaptureErrorCode.NETWORK: (
        "Network error occurred. Please check your internet connection "
        "and try again."
    ),
    CaptureErrorCode.OTHER: "Speech recognition error. Please try again.",
}


@dataclass(frozen=True)
class Transcript:
    text: str


@dataclass(frozen=True)
class CaptureError:
    code: CaptureErrorCode
    detail: str = ""

    @property
    def guidance(self) -> str:
        """User-facing diagnostic for this error code."""
        return CAPTURE_GUIDANCE[self.code]


CaptureResult = Union[Transcript, CaptureError]


# Browser-style recogniser codes
_CODE_ALIASES = {"not-allowed": CaptureErrorCode.PERMISSION_DENIED,
                 "service-not-allowed": CaptureErrorCode.PERMISSION_DENIED}


def to_capture_error(exc: RecognitionError) -> CaptureError:
    code = _CODE_ALIASES.get(exc.capture_code)
    if code is None:
        try:
            code = CaptureErrorCode(exc.capture_code)
        except ValueError:
            code = CaptureErrorCode.OTHER
    return CaptureError(code=code, detail=exc.message)


class SpeechCapture(ABC):
    """Base class for capture collaborators.

    Subclasses implement _capture(); at most one capture is outstanding.
    The pending capture runs as a task so stop() can cancel it, the same
    way AudioChannel.stop() cancels playback.
    """

    def __init__(self):
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def listen(self) -> CaptureResult:
        if self.active:
            raise RuntimeError("capture already in progress")
        task = asyncio.ensure_future(self._capture())
        self._task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._task is task:
                self._task = None

        if task.cancelled():
            return CaptureError(CaptureErrorCode.OTHER, "capture stopped")
        exc = task.exception()
        if isinstance(exc, RecognitionError):
            err = to_capture_error(exc)
            logger.warning("capture: error  code=%s  detail=%s", err.code.value, err.detail)
            return err
        if exc is not None:
            raise exc

        text = task.result()
        if not text or not text.strip():
            return CaptureError(CaptureErrorCode.NO_SPEECH)
        return Transcript(text.strip())

    def stop(self) -> None:
        """Cancel the pending capture, if any."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("capture: stopped")

    @abstractmethod
    async def _capture(self) -> str:
        """Return the raw recognised text or raise RecognitionError."""


class ConsoleCapture(SpeechCapture):
    """Reads one line from stdin per turn (typed stand-in for a microphone).

    A blocking read cannot be interrupted, so a read abandoned by stop() is
    kept and handed to the next listen() instead of starting a second one.
    """

    def __init__(self, prompt: str = "> ", reader: Optional[Callable[[], str]] = None):
        super().__init__()
        self._prompt = prompt
        self._reader = reader or self._read_line
        self._read: Optional[asyncio.Future] = None

    def _read_line(self) -> str:
        sys.stdout.write(self._prompt)
        sys.stdout.flush()
        line = sys.stdin.readline()
        if line == "":
            raise RecognitionError("other", "input stream closed")
        return line

    async def _capture(self) -> str:
        if self._read is None:
            self._read = asyncio.get_running_loop().run_in_executor(None, self._reader)
        read = self._read
        try:
            return await asyncio.shield(read)
        finally:
            if read.done():
                self._read = None
