"""
NewSight — Turn Controller (guided setup dialogue)

Drives one DialogueSession through the configuration steps:

    IDLE → AWAITING_SYNTHESIS → LISTENING → PROCESSING → APPLYING
         → (AWAITING_SYNTHESIS | COMPLETED)

Contract:
    - Every state write goes through turn_taking.transition().
    - Synthesis fallback or a playback error goes straight to LISTENING.
    - A capture error keeps the session in LISTENING and surfaces guidance.
    - stop() is synchronous: it cancels playback, advances the turn token,
      and forces IDLE.  Results of calls issued under an older token are
      discarded when they arrive.
    - The dialogue progresses even if every remote service is degraded.

Usage:
    controller = TurnController(session, speech, capture, classifier, store, channel)
    final_state = await controller.run()
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

from newsight.app.action_executor import (
    SETUP,
    ExecutionResult,
    SideEffect,
    SideEffectKind,
    execute_action,
)
from newsight.app.capture import CaptureError, SpeechCapture
from newsight.app.intent_classifier import ClassificationContext, IntentClassifier
from newsight.app.playback import AudioChannel, PlaybackError
from newsight.app.profile_store import ProfileStore
from newsight.app.session_manager import DialogueSession
from newsight.app.steps import CLOSING_LINE, DEFAULT_STEPS, ConfigurationStep
from newsight.app.tts_client import SpeechSynthesisGateway
from newsight.app.turn_taking import TurnState, transition

logger = logging.getLogger(__name__)

FeedbackSink = Callable[[str], None]
TurnOutcome = Union[ExecutionResult, CaptureError, None]


@dataclass(frozen=True)
class Reply:
    """What to show and what to say at the end of a turn.

    ``degraded`` replaces ``display`` when synthesis falls back, for replies
    whose spoken text carries information the display text does not.
    """
    display: str
    spoken: str
    degraded: str = ""

    @classmethod
    def text(cls, text: str) -> "Reply":
        return cls(display=text, spoken=text)


class TurnController:
    """Turn orchestration for the guided setup dialogue."""

    mode = SETUP

    def __init__(
        self,
        session: DialogueSession,
        speech: SpeechSynthesisGateway,
        capture: SpeechCapture,
        classifier: IntentClassifier,
        store: ProfileStore,
        channel: AudioChannel,
        steps: Sequence[ConfigurationStep] = DEFAULT_STEPS,
        on_feedback: Optional[FeedbackSink] = None,
    ):
        self.session = session
        self._speech = speech
        self._capture = capture
        self._classifier = classifier
        self._store = store
        self._channel = channel
        self._steps = tuple(steps)
        self._on_feedback = on_feedback
        self._profile_loaded = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> TurnState:
        return self.session.turn_state

    @property
    def current_step(self) -> Optional[ConfigurationStep]:
        idx = self.session.step_index
        return self._steps[idx] if 0 <= idx < len(self._steps) else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """IDLE → AWAITING_SYNTHESIS with the active prompt, then LISTENING.

        Returns False when not IDLE, when every step is already done, or when
        a stop overtook the opening prompt.
        """
        if self.state != TurnState.IDLE:
            logger.warning(
                "turn_controller: start ignored  session=%s  state=%s",
                self.session.session_id, self.state.value,
            )
            return False
        if self._finished():
            logger.warning(
                "turn_controller: start ignored, no steps remaining  session=%s  step=%d",
                self.session.session_id, self.session.step_index,
            )
            return False
        if not self._profile_loaded:
            self.session.profile = self._store.load()
            self._profile_loaded = True

        token = self.session.turn_token
        return await self._prompt(token, self._opening_reply())

    def stop(self, reason: str = "stop") -> bool:
        """Synchronous stop.  Returns True if the session was not already IDLE."""
        session = self.session
        session.new_turn_token()
        self._channel.stop()
        self._capture.stop()
        session.speaking = False
        if session.turn_state == TurnState.IDLE:
            return False
        return transition(session, TurnState.IDLE, reason=reason, trace_id=session.trace_id)

    async def run(self, max_capture_errors: int = 3) -> TurnState:
        """Run until COMPLETED, or IDLE after stop / repeated capture errors."""
        await self.start()
        consecutive_errors = 0
        while self.state == TurnState.LISTENING:
            outcome = await self.listen()
            if isinstance(outcome, CaptureError):
                consecutive_errors += 1
                if consecutive_errors >= max_capture_errors:
                    logger.warning(
                        "turn_controller: giving up after %d capture errors  session=%s",
                        consecutive_errors, self.session.session_id,
                    )
                    self.stop(reason="capture_errors")
            else:
                consecutive_errors = 0
        return self.state

    # ------------------------------------------------------------------
    # Turn steps
    # ------------------------------------------------------------------

    async def listen(self) -> TurnOutcome:
        """Await one capture and process it.  Only valid in LISTENING."""
        if self.state != TurnState.LISTENING:
            logger.warning(
                "turn_controller: listen ignored  session=%s  state=%s",
                self.session.session_id, self.state.value,
            )
            return None

        token = self.session.turn_token
        captured = await self._capture.listen()
        if not self.session.is_current(token):
            logger.info("turn_controller: stale capture discarded  session=%s",
                        self.session.session_id)
            return None

        if isinstance(captured, CaptureError):
            self._show(captured.guidance)
            logger.info(
                "turn_controller: capture error, still listening  session=%s  code=%s",
                self.session.session_id, captured.code.value,
            )
            return captured

        return await self.handle_transcript(captured.text, token)

    async def handle_transcript(self, text: str,
                                token: Optional[int] = None) -> Optional[ExecutionResult]:
        """LISTENING → PROCESSING → APPLYING → next prompt (or COMPLETED)."""
        session = self.session
        if token is None:
            token = session.turn_token

        if not transition(session, TurnState.PROCESSING, reason="transcript",
                          trace_id=session.trace_id):
            return None

        context = self._context()
        classification = await self._classifier.classify(text, context)
        if not session.is_current(token):
            logger.info(
                "turn_controller: stale classification discarded  session=%s  label=%s",
                session.session_id, classification.label,
            )
            return None
        action = self._classifier.resolve_action(classification, text, context)

        transition(session, TurnState.APPLYING, reason=action.kind.value,
                   trace_id=session.trace_id)
        result = execute_action(session.profile, action, session.articles, mode=self.mode)
        session.profile = result.settings

        reply = Reply.text(result.feedback)
        for effect in result.side_effects:
            replaced = await self._perform(effect, result, token)
            if not session.is_current(token):
                return None
            if replaced is not None:
                reply = replaced

        logger.info(
            "turn_controller: applied  session=%s  context=%s  label=%s  source=%s  "
            "action=%s  changed=%s",
            session.session_id, context.name, classification.label,
            classification.source, action.kind.value, result.changed,
        )
        await self._advance(reply, token)
        return result

    # ------------------------------------------------------------------
    # Hooks (overridden by the news session)
    # ------------------------------------------------------------------

    def _finished(self) -> bool:
        return self.current_step is None

    def _opening_reply(self) -> Reply:
        return Reply.text(self.current_step.prompt_text)

    def _context(self) -> ClassificationContext:
        step = self.current_step
        return ClassificationContext(name=step.target_key, settings=self.session.profile)

    async def _advance(self, reply: Reply, token: int) -> None:
        session = self.session
        session.step_index += 1
        step = self.current_step

        if step is None:
            self._persist(session.profile)
            transition(session, TurnState.COMPLETED, reason="steps_exhausted",
                       trace_id=session.trace_id)
            self._show(CLOSING_LINE)
            await self._say(token, CLOSING_LINE)
            logger.info("turn_controller: setup completed  session=%s  profile=%s",
                        session.session_id, session.profile.to_snapshot())
            return

        joined = f"{reply.display} {step.prompt_text}".strip()
        spoken = f"{reply.spoken} {step.prompt_text}".strip()
        await self._prompt(token, Reply(display=joined, spoken=spoken))

    async def _perform(self, effect: SideEffect, result: ExecutionResult,
                       token: int) -> Optional[Reply]:
        if effect.kind == SideEffectKind.PERSIST_PROFILE:
            self._persist(result.settings)
        elif effect.kind == SideEffectKind.STOP_AUDIO:
            self._channel.stop()
            self.session.speaking = False
        else:
            logger.warning("turn_controller: unhandled side effect  kind=%s", effect.kind.value)
        return None

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    async def _prompt(self, token: int, reply: Reply) -> bool:
        """→ AWAITING_SYNTHESIS, speak, → LISTENING.  False if stale."""
        session = self.session
        if not transition(session, TurnState.AWAITING_SYNTHESIS, reason="prompt",
                          trace_id=session.trace_id):
            return False
        self._show(reply.display)

        spoke = await self._say(token, reply.spoken)
        if not session.is_current(token):
            return False
        if not spoke and reply.degraded:
            self._show(reply.degraded)

        return transition(session, TurnState.LISTENING, reason="prompt_done",
                          trace_id=session.trace_id)

    async def _say(self, token: int, text: str) -> bool:
        """Synthesise and play *text*.  True only if audio actually played."""
        session = self.session
        if not text.strip():
            return False
        try:
            result = await self._speech.speak(session, text)
        except RuntimeError as e:
            logger.warning("turn_controller: synthesis skipped  session=%s  error=%s",
                           session.session_id, e)
            return False
        if not session.is_current(token) or result.is_fallback:
            return False

        session.speaking = True
        played = await self._channel.play(result.value)
        session.speaking = False
        if isinstance(played, PlaybackError):
            logger.warning("turn_controller: playback error treated as fallback  "
                           "session=%s  reason=%s", session.session_id, played.reason)
            return False
        return session.is_current(token)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _show(self, text: str) -> None:
        self.session.set_feedback(text)
        if self._on_feedback is not None and text:
            self._on_feedback(text)

    def _persist(self, settings) -> None:
        try:
            self._store.save(settings)
        except OSError as e:
            logger.error("turn_controller: profile save failed  session=%s  error=%s",
                         self.session.session_id, e)
