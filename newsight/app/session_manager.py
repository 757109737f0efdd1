"""
NewSight — Dialogue Session Manager

One DialogueSession per live dialogue.  It carries:
    - the accessibility profile (Settings) and the active step index
    - turn state (written exclusively by app.turn_taking.transition)
    - turn_token, the stale-result guard for in-flight remote calls
    - the sticky tts_available flag
    - feedback text surfaced to the user

Turn-state writes are delegated to app.turn_taking.transition() — never
written directly here.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from newsight.app.turn_taking import TurnState, get_state_snapshot, transition
from newsight.schemas.news import DisplayArticle
from newsight.schemas.profile import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DialogueSession dataclass
# ---------------------------------------------------------------------------

@dataclass
class DialogueSession:
    """
    Runtime state for a single dialogue.

    ``turn_state`` is manipulated only through ``turn_taking.transition()``.
    ``profile`` is replaced only with settings returned by the action executor.
    """

    session_id: str
    profile: Settings = field(default_factory=Settings)
    step_index: int = 0
    feedback: str = ""

    # ---- turn state (written exclusively by turn_taking.transition) -------
    turn_state: TurnState = TurnState.IDLE
    state_seq: int = 0
    turn_seq: int = 0
    turn_token: int = 0

    # ---- degradation flags -------------------------------------------------
    tts_available: bool = True      # sticky: reset only by a new session
    speaking: bool = False
    disabled_features: Set[str] = field(default_factory=set)

    # ---- news command session ----------------------------------------------
    articles: List[DisplayArticle] = field(default_factory=list)

    # ---- correlation / timing ----------------------------------------------
    trace_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    created_ts: float = field(default_factory=time.monotonic)
    last_state_change_ts: float = 0.0

    metadata: Dict[str, Any] = field(default_factory=dict)

    # ---- helpers -----------------------------------------------------------

    def new_turn_token(self) -> int:
        """Invalidate every in-flight result by advancing the token."""
        self.turn_token += 1
        return self.turn_token

    def is_current(self, token: int) -> bool:
        return token == self.turn_token

    def set_feedback(self, text: str) -> None:
        self.feedback = text

    def snapshot(self) -> Dict[str, Any]:
        """Diagnostic snapshot (safe to serialise to JSON)."""
        snap = get_state_snapshot(self)
        snap.update({
            "step_index": self.step_index,
            "feedback": self.feedback,
            "tts_available": self.tts_available,
            "speaking": self.speaking,
            "disabled_features": sorted(self.disabled_features),
            "article_count": len(self.articles),
            "profile": self.profile.to_snapshot(),
            "trace_id": self.trace_id,
        })
        return snap


# ---------------------------------------------------------------------------
# DialogueSessionManager
# ---------------------------------------------------------------------------

class DialogueSessionManager:
    """
    Create, retrieve and tear down DialogueSession instances.

    Closing a session advances its turn token (so late results are dropped)
    and forces turn_state back to IDLE.
    """

    def __init__(self):
        self._sessions: Dict[str, DialogueSession] = {}

    def create(
        self,
        profile: Optional[Settings] = None,
        metadata: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> DialogueSession:
        """Create and register a new DialogueSession."""
        sid = session_id or uuid.uuid4().hex
        session = DialogueSession(
            session_id=sid,
            profile=profile or Settings(),
            metadata=metadata or {},
        )
        self._sessions[sid] = session
        logger.info(
            "dialogue session created  session=%s  trace=%s  active=%d",
            sid, session.trace_id, self.active_count,
        )
        return session

    def get(self, session_id: str) -> Optional[DialogueSession]:
        return self._sessions.get(session_id)

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def close(self, session_id: str, reason: str = "close") -> bool:
        """
        Tear down a dialogue session.

        Returns True if the session existed and was closed.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            logger.warning("close called for unknown session=%s", session_id)
            return False

        session.new_turn_token()
        session.speaking = False
        if session.turn_state != TurnState.IDLE:
            transition(session, TurnState.IDLE, reason=f"session_close:{reason}",
                       trace_id=session.trace_id)

        logger.info(
            "dialogue session closed  session=%s  reason=%s  "
            "turns=%d  state_transitions=%d  active=%d",
            session_id, reason, session.turn_seq, session.state_seq, self.active_count,
        )
        return True

    def close_all(self, reason: str = "shutdown") -> int:
        """Close all sessions.  Returns count of sessions closed."""
        closed = 0
        for sid in list(self._sessions.keys()):
            if self.close(sid, reason=reason):
                closed += 1
        return closed
