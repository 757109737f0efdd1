"""
NewSight error taxonomy.

Only ValidationError and ConfigurationError (for essential features) are ever
raised to callers of the remote-call layer.  TransientServiceError is absorbed
into fallback results; RecognitionError is turned into spoken guidance.
"""

from typing import Any, Dict, Optional


class NewsightError(Exception):
    """Base error with a machine-readable code and optional details."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"{code}: {message}")


class ConfigurationError(NewsightError):
    """Essential configuration missing or rejected; halts only one feature."""

    def __init__(self, feature: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.feature = feature
        super().__init__("CONFIGURATION", message, {"feature": feature, **(details or {})})


class TransientServiceError(NewsightError):
    """Retryable failure of a remote service (rate limit, 5xx, transport)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__("TRANSIENT", message, {"status_code": status_code})


class ValidationError(NewsightError):
    """Malformed caller input.  Rejected before any side effect."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__("VALIDATION", message, {"field": field})


class RecognitionError(NewsightError):
    """Speech capture failed (no speech, permission, network, other)."""

    def __init__(self, capture_code: str, message: str = ""):
        self.capture_code = capture_code
        super().__init__("RECOGNITION", message or capture_code, {"capture_code": capture_code})


def require_text(value: Any, field: str = "text") -> str:
    """Return *value* if it is a non-blank string, else raise ValidationError."""
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} is required and must be a string")
    if not value.strip():
        raise ValidationError(field, f"{field} cannot be empty")
    return value
