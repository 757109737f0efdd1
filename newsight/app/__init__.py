"""
NewSight App — Voice Dialogue Core

Turn state machine, remote-call resilience, intent classification, action
execution and the two dialogue controllers (guided setup, news session).
"""

from newsight.app.turn_taking import (
    TurnState,
    ALLOWED_TRANSITIONS,
    transition,
    get_state_snapshot,
)
from newsight.app.resilience import (
    FailureClass,
    RetryPolicy,
    RemoteCallResult,
    call,
)
from newsight.app.session_manager import DialogueSession, DialogueSessionManager
from newsight.app.actions import Action, ActionKind
from newsight.app.intent_classifier import (
    Classification,
    ClassificationContext,
    IntentClassifier,
    classify_locally,
    resolve_article,
)
from newsight.app.action_executor import ExecutionResult, SideEffectKind, execute_action
from newsight.app.tts_client import SpeechSynthesisGateway
from newsight.app.turn_controller import TurnController
from newsight.app.news_session import NewsTurnController

__all__ = [
    "TurnState",
    "ALLOWED_TRANSITIONS",
    "transition",
    "get_state_snapshot",
    "FailureClass",
    "RetryPolicy",
    "RemoteCallResult",
    "call",
    "DialogueSession",
    "DialogueSessionManager",
    "Action",
    "ActionKind",
    "Classification",
    "ClassificationContext",
    "IntentClassifier",
    "classify_locally",
    "resolve_article",
    "ExecutionResult",
    "SideEffectKind",
    "execute_action",
    "SpeechSynthesisGateway",
    "TurnController",
    "NewsTurnController",
]
