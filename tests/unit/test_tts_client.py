"""
Tests for app.tts_client — sticky per-session speech fallback.

Verifies:
    S1. A successful synthesis leaves tts_available set.
    S2. The first fallback clears tts_available; later calls do not go out.
    S3. An unconfigured capability switches the session to text-only at once.
    S4. A new session starts with speech available again.
    S5. Blank text is rejected before any call.
    S6. At most one synthesis is outstanding per session turn; a new turn is not blocked.
"""

import asyncio

import pytest

from newsight.app.resilience import FailureClass
from newsight.app.tts_client import SpeechSynthesisGateway
from newsight.errors import ValidationError

from fakes import FakeSpeech, failed


class TestSpeechGateway:
    @pytest.mark.asyncio
    async def test_s1_success(self, session):
        gateway = SpeechSynthesisGateway(FakeSpeech())
        result = await gateway.speak(session, "Welcome to NewSight!")
        assert result.ok
        assert result.value == b"ID3-fake-audio"
        assert session.tts_available is True

    @pytest.mark.asyncio
    async def test_s2_fallback_is_sticky(self, session):
        speech = FakeSpeech([failed("HTTP 503", 503)])
        gateway = SpeechSynthesisGateway(speech)

        first = await gateway.speak(session, "one")
        assert first.is_fallback
        assert session.tts_available is False

        second = await gateway.speak(session, "two")
        assert second.failure == FailureClass.DISABLED
        assert speech.calls == ["one"]

    @pytest.mark.asyncio
    async def test_s3_unavailable_capability(self, session):
        speech = FakeSpeech(available=False)
        gateway = SpeechSynthesisGateway(speech)
        assert not gateway.capability_available

        result = await gateway.speak(session, "hello")
        assert result.failure == FailureClass.UNAVAILABLE
        assert session.tts_available is False
        assert speech.calls == []

    @pytest.mark.asyncio
    async def test_s4_new_session_resets(self, manager):
        speech = FakeSpeech([failed(), failed()])
        gateway = SpeechSynthesisGateway(speech)
        old = manager.create()
        await gateway.speak(old, "hello")
        assert old.tts_available is False

        fresh = manager.create()
        assert fresh.tts_available is True
        await gateway.speak(fresh, "hello again")
        assert len(speech.calls) == 2

    @pytest.mark.asyncio
    async def test_s5_blank_text_rejected(self, session):
        speech = FakeSpeech()
        with pytest.raises(ValidationError):
            await SpeechSynthesisGateway(speech).speak(session, "   ")
        assert speech.calls == []
        assert session.tts_available is True

    @pytest.mark.asyncio
    async def test_s6_one_synthesis_in_flight(self, session):
        gate = asyncio.Event()
        gateway = SpeechSynthesisGateway(FakeSpeech(gate=gate))
        pending = asyncio.ensure_future(gateway.speak(session, "first"))
        await asyncio.sleep(0)

        with pytest.raises(RuntimeError):
            await gateway.speak(session, "second")

        gate.set()
        result = await pending
        assert result.ok
        # slot is released once the first call returns
        again = await gateway.speak(session, "third")
        assert again.ok

    @pytest.mark.asyncio
    async def test_s6_new_turn_not_blocked_by_abandoned_synthesis(self, session):
        gate = asyncio.Event()
        speech = FakeSpeech(gate=gate)
        gateway = SpeechSynthesisGateway(speech)
        abandoned = asyncio.ensure_future(gateway.speak(session, "first"))
        await asyncio.sleep(0)

        session.new_turn_token()
        current = asyncio.ensure_future(gateway.speak(session, "second"))
        await asyncio.sleep(0)
        assert speech.calls == ["first", "second"]

        gate.set()
        assert (await abandoned).ok
        assert (await current).ok
