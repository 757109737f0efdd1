"""
Profile persistence.

load() is called once at session start; save() after every settings change.
A missing or unreadable profile loads as defaults rather than failing the
dialogue.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from newsight.schemas.profile import Settings

logger = logging.getLogger(__name__)


class ProfileStore(ABC):
    """Opaque key-value persistence for one accessibility profile."""

    @abstractmethod
    def load(self) -> Settings:
        ...

    @abstractmethod
    def save(self, settings: Settings) -> None:
        ...


class MemoryProfileStore(ProfileStore):
    """Keeps the profile in memory; records every save."""

    def __init__(self, initial: Optional[Settings] = None):
        self._current = initial or Settings()
        self.saves: List[Settings] = []

    def load(self) -> Settings:
        return self._current

    def save(self, settings: Settings) -> None:
        self._current = settings
        self.saves.append(settings)


class JsonFileProfileStore(ProfileStore):
    """
    Profile stored as a JSON object on disk.

    Writes go to a sibling temp file and are swapped in with os.replace, so a
    crash mid-write never leaves a truncated profile.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Settings:
        if not self.path.exists():
            logger.info("profile_store: no profile, using defaults  path=%s", self.path)
            return Settings()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data: Dict[str, Any] = json.load(f)
            return Settings(**data)
        except (OSError, ValueError, TypeError, PydanticValidationError) as e:
            logger.warning(
                "profile_store: unreadable profile, using defaults  path=%s  error=%s",
                self.path, e,
            )
            return Settings()

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(settings.to_snapshot(), f, indent=2)
        os.replace(tmp, self.path)
        logger.info("profile_store: saved  path=%s", self.path)
