"""
NewSight — Speech Synthesis Gateway

Wraps the injected speech capability with the session's sticky
``tts_available`` flag:

    - First fallback on a session sets tts_available = False.
    - Once False, speak() returns a DISABLED fallback without calling out.
    - The flag is reset only by creating a new session.

At most one synthesis is outstanding per session turn.  A stop advances the
turn token, so a synthesis left over from an abandoned turn never blocks the
next one; its result is discarded by the caller's token check.

Usage:
    result = await gateway.speak(session, "Welcome to NewSight!")
    if result.ok:
        await channel.play(result.value)
"""

import logging
import time
from typing import Set, Tuple

from newsight.app.resilience import FailureClass, RemoteCallResult, unavailable
from newsight.app.session_manager import DialogueSession
from newsight.errors import require_text

logger = logging.getLogger(__name__)


class SpeechSynthesisGateway:
    """Session-aware front for a speech capability.

    *capability* exposes ``available`` and an awaitable
    ``synthesize(text) -> RemoteCallResult[bytes]``.
    """

    def __init__(self, capability):
        self._capability = capability
        self._in_flight: Set[Tuple[str, int]] = set()

    @property
    def capability_available(self) -> bool:
        return getattr(self._capability, "available", True)

    async def speak(self, session: DialogueSession, text: str) -> RemoteCallResult[bytes]:
        require_text(text)
        sid = session.session_id

        if not session.tts_available:
            logger.debug("tts_client: skipped (sticky fallback)  session=%s", sid)
            return RemoteCallResult.fallback(
                "speech synthesis disabled for this session", FailureClass.DISABLED,
            )

        if not self.capability_available:
            session.tts_available = False
            logger.warning(
                "tts_client: capability unavailable, text-only mode  session=%s  trace=%s",
                sid, session.trace_id,
            )
            return unavailable("speech")

        slot = (sid, session.turn_token)
        if slot in self._in_flight:
            raise RuntimeError(f"synthesis already in flight for session {sid}")

        self._in_flight.add(slot)
        t0 = time.monotonic()
        try:
            result = await self._capability.synthesize(text)
        finally:
            self._in_flight.discard(slot)

        if result.is_fallback:
            session.tts_available = False
            logger.warning(
                "tts_client: fallback, text-only for rest of session  session=%s  "
                "reason=%s  failure=%s  trace=%s",
                sid, result.reason, result.failure.value if result.failure else "-",
                session.trace_id,
            )
        else:
            logger.info(
                "tts_client: synthesized  session=%s  chars=%d  bytes=%d  elapsed=%.0fms",
                sid, len(text), len(result.value or b""), (time.monotonic() - t0) * 1000,
            )
        return result
