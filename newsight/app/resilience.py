"""
NewSight — Remote Call Resilience Layer

Every outbound call (speech synthesis, classification, LLM, news, simplify)
goes through call().  Contract:

    - 2xx                      → RemoteCallResult.success(decoded payload)
    - 429 / 5xx / transport    → retry after base_delay * 2**attempt
    - other 4xx                → fallback, or ConfigurationError when the
                                 policy is essential
    - attempts exhausted       → fallback, never an exception

Usage:
    result = await call(lambda: client.post(url, json=payload), SYNTHESIS_POLICY,
                        decode=lambda r: r.content, name="speech")
    if result.ok:
        audio = result.value
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

import httpx

from newsight.errors import ConfigurationError, TransientServiceError
from newsight.log_redaction import redact_string

logger = logging.getLogger(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[httpx.Response]]
Sleeper = Callable[[float], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Failure taxonomy
# ---------------------------------------------------------------------------

class FailureClass(str, Enum):
    """Why a remote call ended in fallback."""
    BACKPRESSURE = "backpressure"       # 429 rate limit
    SERVER_ERROR = "server_error"       # 5xx
    CONNECTION = "connection"           # transport / DNS / timeout
    CLIENT_ERROR = "client_error"       # non-retryable 4xx
    INVALID_PAYLOAD = "invalid_payload" # 2xx with an undecodable body
    UNAVAILABLE = "unavailable"         # capability not configured
    DEADLINE = "deadline"               # total retry budget exceeded
    DISABLED = "disabled"               # suppressed by a sticky session flag


# ---------------------------------------------------------------------------
# Policy and result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters for one kind of remote call."""
    max_attempts: int = 2
    base_delay_ms: int = 1000
    max_elapsed_secs: Optional[float] = 30.0
    essential: bool = False
    feature: str = "remote"

    def is_retryable_status(self, status: int) -> bool:
        return status == 429 or status >= 500

    def delay_secs(self, attempt: int) -> float:
        """Backoff before retrying after the 0-based *attempt* failed."""
        return (self.base_delay_ms * (2 ** attempt)) / 1000.0

    def with_overrides(self, **kwargs) -> "RetryPolicy":
        current = {
            "max_attempts": self.max_attempts,
            "base_delay_ms": self.base_delay_ms,
            "max_elapsed_secs": self.max_elapsed_secs,
            "essential": self.essential,
            "feature": self.feature,
        }
        current.update(kwargs)
        return RetryPolicy(**current)


SYNTHESIS_POLICY = RetryPolicy(max_attempts=2, base_delay_ms=1000, feature="speech")
CLASSIFICATION_POLICY = RetryPolicy(max_attempts=2, base_delay_ms=1000, feature="classifier")
LLM_POLICY = RetryPolicy(max_attempts=2, base_delay_ms=1000, feature="llm")
CONTENT_POLICY = RetryPolicy(max_attempts=3, base_delay_ms=1000, essential=True, feature="news")


@dataclass(frozen=True)
class RemoteCallResult(Generic[T]):
    """success(value) | fallback(reason).  Never raised, always returned."""
    ok: bool
    value: Optional[T] = None
    reason: str = ""
    failure: Optional[FailureClass] = None
    status_code: Optional[int] = None
    attempts: int = 0
    elapsed_ms: float = 0.0

    @property
    def is_fallback(self) -> bool:
        return not self.ok

    @classmethod
    def success(cls, value: T, attempts: int = 1, elapsed_ms: float = 0.0,
                status_code: Optional[int] = None) -> "RemoteCallResult[T]":
        return cls(ok=True, value=value, attempts=attempts,
                   elapsed_ms=elapsed_ms, status_code=status_code)

    @classmethod
    def fallback(cls, reason: str, failure: FailureClass = FailureClass.SERVER_ERROR,
                 status_code: Optional[int] = None, attempts: int = 0,
                 elapsed_ms: float = 0.0) -> "RemoteCallResult[T]":
        return cls(ok=False, reason=reason, failure=failure, status_code=status_code,
                   attempts=attempts, elapsed_ms=elapsed_ms)

    def map(self, fn: Callable[[T], Any]) -> "RemoteCallResult[Any]":
        """Apply *fn* to a success value; fallbacks pass through unchanged."""
        if not self.ok:
            return self
        return RemoteCallResult.success(fn(self.value), attempts=self.attempts,
                                        elapsed_ms=self.elapsed_ms,
                                        status_code=self.status_code)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def extract_error_detail(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error body, if there is one.

    Understands ``{"detail": {"message": ...}}``, ``{"error": {"message": ...}}``,
    ``{"error": "..."}`` and ``{"message": ...}``.  Returns "" otherwise.
    """
    try:
        data = json.loads(response.text)
    except (ValueError, UnicodeDecodeError):
        return ""
    if not isinstance(data, dict):
        return ""
    for key in ("detail", "error"):
        inner = data.get(key)
        if isinstance(inner, dict) and isinstance(inner.get("message"), str):
            return inner["message"]
        if isinstance(inner, str):
            return inner
    message = data.get("message")
    return message if isinstance(message, str) else ""


# ---------------------------------------------------------------------------
# Core wrapper
# ---------------------------------------------------------------------------

async def call(
    producer: Producer,
    policy: RetryPolicy,
    decode: Optional[Callable[[httpx.Response], T]] = None,
    name: str = "",
    sleep: Sleeper = asyncio.sleep,
) -> RemoteCallResult[T]:
    """
    Run *producer* under *policy* and return a RemoteCallResult.

    Args:
        producer: Zero-arg coroutine factory issuing one HTTP request.
        policy:   Retry policy (attempt budget, backoff, essential flag).
        decode:   Turns a 2xx response into the success value.  A
                  ValueError/LookupError/TypeError here means INVALID_PAYLOAD.
        name:     Label for logs; defaults to ``policy.feature``.
        sleep:    Backoff sleeper (injectable for tests).

    Raises:
        ConfigurationError: only for essential policies on a non-retryable
                            4xx response.
    """
    label = name or policy.feature
    t0 = time.monotonic()
    last_reason = ""
    last_failure = FailureClass.SERVER_ERROR
    last_status: Optional[int] = None
    attempt = 0
    slept = 0.0

    def _elapsed_ms() -> float:
        return round((time.monotonic() - t0) * 1000, 1)

    for attempt in range(policy.max_attempts):
        try:
            response = await producer()
        except (httpx.RequestError, TransientServiceError) as exc:
            last_reason = f"transport error: {exc!s}"
            last_failure = FailureClass.CONNECTION
            last_status = getattr(exc, "status_code", None)
        else:
            status = response.status_code
            last_status = status

            # ---- success range ------------------------------------------
            if 200 <= status < 300:
                try:
                    value = decode(response) if decode else response
                except (ValueError, LookupError, TypeError) as exc:
                    logger.warning(
                        "remote_call: undecodable payload  name=%s  status=%d  error=%s",
                        label, status, exc,
                    )
                    return RemoteCallResult.fallback(
                        f"invalid payload: {exc!s}", FailureClass.INVALID_PAYLOAD,
                        status_code=status, attempts=attempt + 1, elapsed_ms=_elapsed_ms(),
                    )
                if attempt:
                    logger.info(
                        "remote_call: recovered  name=%s  attempts=%d  elapsed=%.0fms",
                        label, attempt + 1, _elapsed_ms(),
                    )
                return RemoteCallResult.success(
                    value, attempts=attempt + 1, elapsed_ms=_elapsed_ms(), status_code=status,
                )

            detail = redact_string(extract_error_detail(response))

            # ---- non-retryable client error -----------------------------
            if not policy.is_retryable_status(status):
                reason = f"HTTP {status}" + (f" - {detail}" if detail else "")
                logger.warning(
                    "remote_call: client error  name=%s  status=%d  detail=%s  essential=%s",
                    label, status, detail or "-", policy.essential,
                )
                if policy.essential:
                    raise ConfigurationError(
                        policy.feature, f"{label} rejected the request: {reason}",
                        {"status_code": status},
                    )
                return RemoteCallResult.fallback(
                    reason, FailureClass.CLIENT_ERROR, status_code=status,
                    attempts=attempt + 1, elapsed_ms=_elapsed_ms(),
                )

            last_failure = FailureClass.BACKPRESSURE if status == 429 else FailureClass.SERVER_ERROR
            last_reason = f"HTTP {status}" + (f" - {detail}" if detail else "")

        # ---- retry bookkeeping -------------------------------------------
        if attempt >= policy.max_attempts - 1:
            break

        delay = policy.delay_secs(attempt)
        if policy.max_elapsed_secs is not None:
            spent = max(time.monotonic() - t0, slept)
            if spent + delay > policy.max_elapsed_secs:
                logger.warning(
                    "remote_call: retry budget exhausted  name=%s  spent=%.1fs  "
                    "next_delay=%.1fs  budget=%.1fs",
                    label, spent, delay, policy.max_elapsed_secs,
                )
                return RemoteCallResult.fallback(
                    f"retry budget exceeded after {last_reason}", FailureClass.DEADLINE,
                    status_code=last_status, attempts=attempt + 1, elapsed_ms=_elapsed_ms(),
                )

        logger.info(
            "remote_call: retrying  name=%s  reason=%s  attempt=%d/%d  delay=%.1fs",
            label, last_reason, attempt + 1, policy.max_attempts, delay,
        )
        await sleep(delay)
        slept += delay

    logger.warning(
        "remote_call: fallback  name=%s  reason=%s  attempts=%d  elapsed=%.0fms",
        label, last_reason, attempt + 1, _elapsed_ms(),
    )
    return RemoteCallResult.fallback(
        last_reason or "attempts exhausted", last_failure,
        status_code=last_status, attempts=attempt + 1, elapsed_ms=_elapsed_ms(),
    )


def unavailable(feature: str, reason: str = "") -> RemoteCallResult[Any]:
    """Fallback for a capability whose credential is not configured."""
    return RemoteCallResult.fallback(
        reason or f"{feature} credential not configured", FailureClass.UNAVAILABLE,
    )


def decode_json(response: httpx.Response) -> Any:
    """Decoder returning the parsed JSON body."""
    return response.json()
