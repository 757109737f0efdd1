"""Log redaction utilities for credentials and personal data.

Every NewSight logger runs through RedactionFilter so API keys passed to the
speech, LLM and news providers never reach log output.
"""

import logging
import re
from typing import Any, Dict, Optional


# Patterns for sensitive data
_REDACTION_PATTERNS = [
    # API keys
    (re.compile(r'sk-proj-[a-zA-Z0-9_-]{20,}'), '[REDACTED:openai_key]'),
    (re.compile(r'sk-[a-zA-Z0-9]{20,}'), '[REDACTED:openai_key]'),
    (re.compile(r'sk_[a-f0-9]{32,}'), '[REDACTED:elevenlabs_key]'),
    (re.compile(r'(?i)(xi-api-key|x-api-key|apikey|api_key)(["\']?\s*[:=]\s*["\']?)[a-zA-Z0-9_-]{16,}'),
     r'\1\2[REDACTED]'),
    # Generic bearer tokens
    (re.compile(r'Bearer\s+[a-zA-Z0-9._-]{20,}'), 'Bearer [REDACTED]'),
    # Email addresses
    (re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}'), '[REDACTED:email]'),
]

_SENSITIVE_KEYS = frozenset({
    "password", "secret", "token", "api_key", "apikey",
    "authorization", "xi-api-key", "x-api-key",
})


def redact_string(text: str) -> str:
    """Redact sensitive patterns from a string."""
    if not isinstance(text, str):
        return text
    result = text
    for pattern, replacement in _REDACTION_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_dict(data: Dict[str, Any], sensitive_keys: Optional[frozenset] = None) -> Dict[str, Any]:
    """Redact sensitive values from a dictionary (recursively).

    Args:
        data: Dictionary to redact
        sensitive_keys: Key names whose values should be fully redacted
    """
    keys = sensitive_keys or _SENSITIVE_KEYS
    result: Dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(sk in key_lower for sk in keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, str):
            result[key] = redact_string(value)
        elif isinstance(value, dict):
            result[key] = redact_dict(value, keys)
        elif isinstance(value, list):
            result[key] = [
                redact_dict(item, keys) if isinstance(item, dict)
                else redact_string(item) if isinstance(item, str)
                else item
                for item in value
            ]
        else:
            result[key] = value
    return result


class RedactionFilter(logging.Filter):
    """Scrub the rendered log message before any handler sees it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            try:
                record.msg = record.getMessage()
            except (TypeError, ValueError):
                return True
            record.args = None
        record.msg = redact_string(str(record.msg))
        return True


_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s  %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``newsight`` logger tree with redaction on every record."""
    root = logging.getLogger("newsight")
    root.setLevel(level.upper())
    if not any(getattr(h, "_newsight", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler.addFilter(RedactionFilter())
        handler._newsight = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
