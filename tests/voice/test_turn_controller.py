"""
Tests for app.turn_controller — the guided setup dialogue.

Verifies:
    C1. Five answers walk the five steps and end in COMPLETED with the profile saved.
    C2. The dialogue completes with speech failing (text-only, one synthesis attempt).
    C3. A capture error keeps the session LISTENING and shows guidance.
    C4. Repeated capture errors end the run in IDLE.
    C5. stop() during classification discards the late result.
    C6. stop() during playback cancels it and forces IDLE.
    C7. start() is only honoured from IDLE; listen() only from LISTENING.
    C8. A restart after stop is not blocked by the abandoned opening prompt.
    C9. start() is refused once every step is done.
"""

import asyncio

import pytest

from newsight.app.capture import CAPTURE_GUIDANCE, CaptureError, CaptureErrorCode
from newsight.app.intent_classifier import IntentClassifier
from newsight.app.playback import SilentAudioChannel
from newsight.app.profile_store import MemoryProfileStore
from newsight.app.steps import CLOSING_LINE, DEFAULT_STEPS
from newsight.app.tts_client import SpeechSynthesisGateway
from newsight.app.turn_controller import TurnController
from newsight.app.turn_taking import TurnState
from newsight.errors import RecognitionError
from newsight.schemas.profile import ContrastMode, Settings

from fakes import FakeRemoteClassifier, FakeSpeech, ScriptedCapture, failed, ok

ANSWERS = ["yes", "no", "bigger", "yes please", "I use a screen reader at night"]


def _controller(session, script, speech=None, classifier=None, store=None, channel=None,
                shown=None):
    return TurnController(
        session,
        SpeechSynthesisGateway(speech or FakeSpeech()),
        ScriptedCapture(script),
        classifier or IntentClassifier(),
        store or MemoryProfileStore(),
        channel or SilentAudioChannel(),
        on_feedback=shown.append if shown is not None else None,
    )


class TestGuidedSetup:
    """C1-C2."""

    @pytest.mark.asyncio
    async def test_c1_five_steps_to_completed(self, session):
        store = MemoryProfileStore()
        speech = FakeSpeech()
        shown = []
        controller = _controller(session, ANSWERS, speech=speech, store=store, shown=shown)

        final = await controller.run()

        assert final == TurnState.COMPLETED
        expected = Settings(
            color_adjust=True,
            contrast_mode=ContrastMode.NONE,
            font_scale=6,
            simplify=True,
            note="I use a screen reader at night",
        )
        assert session.profile == expected
        assert store.load() == expected
        assert session.feedback == CLOSING_LINE
        assert session.step_index == len(DEFAULT_STEPS)
        # opening prompt, four follow-up prompts, closing line
        assert len(speech.calls) == 6
        assert speech.calls[0] == DEFAULT_STEPS[0].prompt_text
        assert shown[1] == f"Color adjustments enabled! {DEFAULT_STEPS[1].prompt_text}"

    @pytest.mark.asyncio
    async def test_c1_unchanged_answer_still_advances(self, session):
        store = MemoryProfileStore()
        controller = _controller(session, ["no"], store=store)
        await controller.start()
        result = await controller.listen()

        assert not result.changed
        assert store.saves == []
        assert session.step_index == 1
        assert controller.state == TurnState.LISTENING

    @pytest.mark.asyncio
    async def test_c2_completes_text_only(self, session):
        speech = FakeSpeech([failed("HTTP 503", 503)])
        channel = SilentAudioChannel()
        controller = _controller(session, ANSWERS, speech=speech, channel=channel)

        final = await controller.run()

        assert final == TurnState.COMPLETED
        assert session.tts_available is False
        assert len(speech.calls) == 1
        assert channel.played == []
        assert session.profile.font_scale == 6

    @pytest.mark.asyncio
    async def test_c2_remote_classifier_used_when_available(self, session):
        remote = FakeRemoteClassifier(ok({"label": "DISABLE"}))
        controller = _controller(session, ["yes"], classifier=IntentClassifier(remote))
        await controller.start()
        await controller.listen()

        assert session.profile.color_adjust is False
        assert remote.calls[0]["context"] == {"name": "color_adjust"}


class TestCaptureErrors:
    """C3-C4."""

    @pytest.mark.asyncio
    async def test_c3_error_keeps_listening(self, session):
        shown = []
        controller = _controller(session, [RecognitionError("no-speech"), "yes"], shown=shown)
        await controller.start()

        outcome = await controller.listen()
        assert isinstance(outcome, CaptureError)
        assert controller.state == TurnState.LISTENING
        assert session.feedback == CAPTURE_GUIDANCE[CaptureErrorCode.NO_SPEECH]
        assert session.step_index == 0

        await controller.listen()
        assert session.step_index == 1
        assert session.profile.color_adjust is True

    @pytest.mark.asyncio
    async def test_c4_repeated_errors_stop(self, session):
        script = [RecognitionError("not-allowed")] * 3
        controller = _controller(session, script)
        final = await controller.run(max_capture_errors=3)
        assert final == TurnState.IDLE
        assert session.feedback == CAPTURE_GUIDANCE[CaptureErrorCode.PERMISSION_DENIED]


class TestStop:
    """C5-C8."""

    @pytest.mark.asyncio
    async def test_c5_stale_classification_discarded(self, session):
        store = MemoryProfileStore()
        remote = FakeRemoteClassifier(ok({"label": "ENABLE"}))
        controller = _controller(session, ["yes"], classifier=IntentClassifier(remote), store=store)
        remote.hook = lambda: controller.stop(reason="user_stop")

        await controller.start()
        result = await controller.listen()

        assert result is None
        assert controller.state == TurnState.IDLE
        assert session.profile.color_adjust is False
        assert session.step_index == 0
        assert store.saves == []

    @pytest.mark.asyncio
    async def test_c6_stop_during_playback(self, session):
        channel = SilentAudioChannel(simulate_secs=10)
        controller = _controller(session, ANSWERS, channel=channel)

        starting = asyncio.ensure_future(controller.start())
        while not channel.is_playing:
            await asyncio.sleep(0)
        assert session.speaking is True

        assert controller.stop() is True
        assert await starting is False
        assert controller.state == TurnState.IDLE
        assert session.speaking is False
        assert not channel.is_playing

    @pytest.mark.asyncio
    async def test_c6_stop_when_idle_is_noop(self, session):
        controller = _controller(session, [])
        token = session.turn_token
        assert controller.stop() is False
        assert session.turn_token == token + 1

    @pytest.mark.asyncio
    async def test_c7_guards(self, session):
        controller = _controller(session, ["yes"])
        assert await controller.listen() is None

        assert await controller.start() is True
        assert await controller.start() is False
        assert controller.state == TurnState.LISTENING

    @pytest.mark.asyncio
    async def test_c7_restart_after_stop_keeps_step(self, session):
        controller = _controller(session, ["yes", "no"])
        await controller.start()
        await controller.listen()
        controller.stop()

        assert await controller.start() is True
        assert session.step_index == 1
        assert session.feedback == DEFAULT_STEPS[1].prompt_text

    @pytest.mark.asyncio
    async def test_c8_restart_while_old_prompt_still_synthesising(self, session):
        gate = asyncio.Event()
        speech = FakeSpeech(gate=gate)
        controller = _controller(session, ["yes"], speech=speech)

        first = asyncio.ensure_future(controller.start())
        while not speech.calls:
            await asyncio.sleep(0)
        assert controller.stop() is True

        second = asyncio.ensure_future(controller.start())
        while len(speech.calls) < 2:
            await asyncio.sleep(0)
        gate.set()

        assert await first is False
        assert await second is True
        assert controller.state == TurnState.LISTENING
        assert session.step_index == 0


class TestExhaustedSteps:
    """C9."""

    @pytest.mark.asyncio
    async def test_c9_no_steps(self, session):
        speech = FakeSpeech()
        controller = TurnController(
            session, SpeechSynthesisGateway(speech), ScriptedCapture([]),
            IntentClassifier(), MemoryProfileStore(), SilentAudioChannel(), steps=(),
        )

        assert await controller.start() is False
        assert controller.state == TurnState.IDLE
        assert speech.calls == []

    @pytest.mark.asyncio
    async def test_c9_restart_after_completion_refused(self, session):
        speech = FakeSpeech()
        controller = _controller(session, ANSWERS, speech=speech)
        assert await controller.run() == TurnState.COMPLETED
        calls = len(speech.calls)

        controller.stop()
        assert await controller.start() is False
        assert controller.state == TurnState.IDLE
        assert len(speech.calls) == calls
        assert session.step_index == len(DEFAULT_STEPS)
