"""
NewSight — Deterministic Turn State Machine

All dialogue state transitions flow through transition().
No other module may write session.turn_state directly.

States:
    IDLE                — not running (before start, or after stop)
    AWAITING_SYNTHESIS  — prompt/feedback is being synthesised and played
    LISTENING           — waiting for the capture collaborator
    PROCESSING          — classifying the transcript
    APPLYING            — executing the resolved action
    COMPLETED           — configuration sequence exhausted

Invariants:
    1. Every transition is validated against ALLOWED_TRANSITIONS.
    2. IDLE is reachable from every state (explicit stop).
    3. state_seq is monotonically incremented on every successful transition.
    4. turn_seq is incremented on every entry into AWAITING_SYNTHESIS.

The session is single-threaded cooperative, so transitions are synchronous:
stop() must be able to force IDLE without awaiting anything.
"""

import logging
import time
from enum import Enum
from typing import Any, Dict, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Turn states
# ---------------------------------------------------------------------------

class TurnState(str, Enum):
    """Dialogue turn states."""
    IDLE = "IDLE"
    AWAITING_SYNTHESIS = "AWAITING_SYNTHESIS"
    LISTENING = "LISTENING"
    PROCESSING = "PROCESSING"
    APPLYING = "APPLYING"
    COMPLETED = "COMPLETED"


# ---------------------------------------------------------------------------
# Allowed transition matrix
# ---------------------------------------------------------------------------

ALLOWED_TRANSITIONS: Dict[TurnState, Tuple[TurnState, ...]] = {
    TurnState.IDLE:               (TurnState.AWAITING_SYNTHESIS,),
    TurnState.AWAITING_SYNTHESIS: (TurnState.LISTENING, TurnState.IDLE),
    TurnState.LISTENING:          (TurnState.PROCESSING, TurnState.IDLE),
    TurnState.PROCESSING:         (TurnState.APPLYING, TurnState.IDLE),
    TurnState.APPLYING:           (TurnState.AWAITING_SYNTHESIS, TurnState.COMPLETED, TurnState.IDLE),
    TurnState.COMPLETED:          (TurnState.IDLE,),
}


# ---------------------------------------------------------------------------
# Core transition function
# ---------------------------------------------------------------------------

def transition(
    session,  # DialogueSession (avoiding circular import)
    target: TurnState,
    reason: str = "",
    trace_id: str = "",
) -> bool:
    """
    Attempt a state transition for *session*.

    Returns True if the transition succeeded, False if it was rejected.
    On rejection the session state is unchanged.

    Args:
        session:   DialogueSession (must have .turn_state, .state_seq,
                   .turn_seq, .session_id, .last_state_change_ts).
        target:    Desired next TurnState.
        reason:    Human-readable reason for the transition (logged).
        trace_id:  Correlation / trace ID for observability.
    """
    current = session.turn_state
    allowed = ALLOWED_TRANSITIONS.get(current, ())

    if target not in allowed:
        logger.warning(
            "transition REJECTED  session=%s  %s → %s  "
            "allowed=%s  reason=%s  trace=%s",
            session.session_id,
            current.value,
            target.value,
            [s.value for s in allowed],
            reason,
            trace_id,
        )
        return False

    # ---- apply ------------------------------------------------------------
    prev = current
    session.turn_state = target
    session.state_seq += 1
    session.last_state_change_ts = time.monotonic()

    if target == TurnState.AWAITING_SYNTHESIS:
        session.turn_seq += 1

    logger.info(
        "transition OK  session=%s  %s → %s  "
        "state_seq=%d  turn_seq=%d  reason=%s  trace=%s",
        session.session_id,
        prev.value,
        target.value,
        session.state_seq,
        session.turn_seq,
        reason,
        trace_id,
    )
    return True


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def get_state_snapshot(session) -> Dict[str, Any]:
    """Read-only snapshot of the session's turn-state metadata."""
    return {
        "session_id": session.session_id,
        "turn_state": session.turn_state.value,
        "state_seq": session.state_seq,
        "turn_seq": session.turn_seq,
        "turn_token": session.turn_token,
        "last_state_change_ts": session.last_state_change_ts,
    }
