"""Configuration for the NewSight voice stack.

Built-in defaults are merged with an optional JSON config file, validated
against CONFIG_SCHEMA, and then overlaid with environment variables.

Usage:
    from newsight.config import NewsightConfig, ConfigValidationError
    cfg = NewsightConfig()
    speech_cfg = cfg.get("speech")

Environment variable overlays:
    NEWSIGHT_SPEECH__VOICE_ID=bIHbv24MWmeRgasZH58o
    NEWSIGHT_NEWS__MAX_ARTICLES=3

Credentials are never stored in the config file; they come from
ELEVENLABS_API_KEY, OPENAI_API_KEY and NEWS_API_KEY.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import jsonschema

logger = logging.getLogger(__name__)

ENV_PREFIX = "NEWSIGHT_"

CREDENTIAL_ENV = {
    "speech": "ELEVENLABS_API_KEY",
    "llm": "OPENAI_API_KEY",
    "news": "NEWS_API_KEY",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "speech": {
        "base_url": "https://api.elevenlabs.io",
        "voice_id": "bIHbv24MWmeRgasZH58o",
        "model_id": "eleven_monolingual_v1",
        "timeout_secs": 30.0,
        "max_attempts": 2,
        "base_delay_ms": 1000,
    },
    "llm": {
        "base_url": "https://api.openai.com/v1",
        "model": "gpt-3.5-turbo",
        "timeout_secs": 30.0,
        "max_attempts": 2,
        "base_delay_ms": 1000,
    },
    "classifier": {
        "url": "",
        "timeout_secs": 10.0,
        "max_attempts": 2,
        "base_delay_ms": 1000,
    },
    "news": {
        "base_url": "https://newsapi.org",
        "country": "us",
        "page_size": 10,
        "max_articles": 5,
        "timeout_secs": 15.0,
        "max_attempts": 3,
        "base_delay_ms": 1000,
    },
    "simplify": {
        "max_tokens": 2000,
    },
    "resilience": {
        "max_elapsed_secs": 30.0,
    },
    "profile": {
        "path": "",
    },
    "logging": {
        "level": "INFO",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 7080,
    },
}

_REMOTE_SECTION = {
    "type": "object",
    "properties": {
        "base_url": {"type": "string"},
        "url": {"type": "string"},
        "timeout_secs": {"type": "number", "exclusiveMinimum": 0},
        "max_attempts": {"type": "integer", "minimum": 1, "maximum": 10},
        "base_delay_ms": {"type": "integer", "minimum": 0},
    },
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "speech": {
            "allOf": [_REMOTE_SECTION],
            "properties": {
                "voice_id": {"type": "string", "minLength": 1},
                "model_id": {"type": "string", "minLength": 1},
            },
        },
        "llm": {
            "allOf": [_REMOTE_SECTION],
            "properties": {"model": {"type": "string", "minLength": 1}},
        },
        "classifier": {"allOf": [_REMOTE_SECTION]},
        "news": {
            "allOf": [_REMOTE_SECTION],
            "properties": {
                "country": {"type": "string", "minLength": 2, "maxLength": 2},
                "page_size": {"type": "integer", "minimum": 1, "maximum": 100},
                "max_articles": {"type": "integer", "minimum": 1, "maximum": 20},
            },
        },
        "simplify": {
            "type": "object",
            "properties": {"max_tokens": {"type": "integer", "minimum": 1}},
        },
        "resilience": {
            "type": "object",
            "properties": {"max_elapsed_secs": {"type": "number", "exclusiveMinimum": 0}},
        },
        "profile": {
            "type": "object",
            "properties": {"path": {"type": "string"}},
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {"enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
            },
        },
        "server": {
            "type": "object",
            "properties": {
                "host": {"type": "string"},
                "port": {"type": "integer", "minimum": 1, "maximum": 65535},
            },
        },
    },
}


class ConfigValidationError(Exception):
    """Raised when config fails schema validation."""
    pass


class NewsightConfig:
    """Validated configuration with environment variable overlay support."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config_path = Path(config_path) if config_path else None
        self._environ = os.environ if environ is None else environ
        self._raw: Dict[str, Any] = {}
        self._validated: Dict[str, Any] = {}
        self._load_and_validate()

    def _load_and_validate(self) -> None:
        """Merge file over defaults, validate, apply env overlays, re-validate."""
        merged = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigValidationError(f"Config file not found: {self.config_path}")
            with open(self.config_path, "r", encoding="utf-8") as f:
                try:
                    self._raw = json.load(f)
                except json.JSONDecodeError as e:
                    raise ConfigValidationError(f"Config file is not valid JSON: {e}") from e
            if not isinstance(self._raw, dict):
                raise ConfigValidationError("Config root must be an object")
            for section, values in self._raw.items():
                if isinstance(values, dict) and isinstance(merged.get(section), dict):
                    merged[section].update(values)
                else:
                    merged[section] = values

        config = self._apply_env_overlays(merged)
        self._validate(config)
        self._validated = config

    @staticmethod
    def _validate(config: Dict[str, Any]) -> None:
        try:
            jsonschema.validate(instance=config, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
            raise ConfigValidationError(
                f"Config validation failed at '{path}': {e.message}"
            ) from e

    def _apply_env_overlays(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply NEWSIGHT_SECTION__KEY environment variables as overrides.

        Section and key are case-insensitive, matched to existing config keys.
        Type coercion is based on the existing value's type.
        """
        for env_key, env_val in self._environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue
            rest = env_key[len(ENV_PREFIX):]
            if "__" not in rest:
                continue
            section, key = (part.lower() for part in rest.split("__", 1))

            if not isinstance(config.get(section), dict):
                continue
            if key not in config[section]:
                logger.debug("Env overlay %s: key '%s' not in section '%s', skipping", env_key, key, section)
                continue

            existing = config[section][key]
            try:
                if isinstance(existing, bool):
                    config[section][key] = env_val.lower() in ("1", "true", "yes")
                elif isinstance(existing, int):
                    config[section][key] = int(env_val)
                elif isinstance(existing, float):
                    config[section][key] = float(env_val)
                else:
                    config[section][key] = env_val
                logger.info("Env overlay applied: %s.%s = %r", section, key, config[section][key])
            except (ValueError, TypeError) as e:
                logger.warning("Env overlay %s: type coercion failed: %s", env_key, e)

        return config

    def get(self, section: str) -> Dict[str, Any]:
        """Get a config section dict (post-overlay)."""
        return dict(self._validated.get(section, {}))

    def credential(self, section: str) -> Optional[str]:
        """Return the API key for *section*, or None when it is not set."""
        env_name = CREDENTIAL_ENV.get(section)
        if not env_name:
            return None
        value = self._environ.get(env_name, "").strip()
        return value or None

    @property
    def raw(self) -> Dict[str, Any]:
        return self._raw
