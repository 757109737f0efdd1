"""Shared fixtures for the NewSight test suite."""

import os
import sys

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
REPO_ROOT = os.path.dirname(TESTS_DIR)
for _p in (REPO_ROOT, TESTS_DIR):
    if _p not in sys.path:
        sys.path.insert(0, _p)

import pytest

from newsight.app.playback import SilentAudioChannel
from newsight.app.profile_store import MemoryProfileStore
from newsight.app.session_manager import DialogueSessionManager

from fakes import FakeSpeech, RecordingSleeper


@pytest.fixture
def manager():
    return DialogueSessionManager()


@pytest.fixture
def session(manager):
    return manager.create(session_id="test-session")


@pytest.fixture
def store():
    return MemoryProfileStore()


@pytest.fixture
def channel():
    return SilentAudioChannel()


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def sleeper():
    return RecordingSleeper()
