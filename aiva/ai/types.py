"""
aiva.ai.types
-------------

Value objects produced by one pipeline run.  Everything here is frozen:
records are built once, at the end of an attempt, and never touched again.

The ``to_dict`` / ``to_payload`` shapes are consumed by existing debug
tooling, so their key names must stay exactly as they are.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Union

from aiva.core.models import ModelConfig, Technique

Clock = Callable[[], datetime]

ALL_MODELS_FAILED = "All LLM models failed. Please check the debug information for details."


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(ts: datetime) -> str:
    """2024-01-01T12:00:00.000Z, the format the dashboards expect."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class AttemptRecord:
    model:           str
    api_url:         str
    request_payload: Dict[str, Any]
    response_data:   Any           = None
    error:           Optional[str] = None
    timestamp:       str           = field(default_factory=lambda: isoformat(utcnow()))

    def __post_init__(self) -> None:
        if not self.model:
            raise ValueError("AttemptRecord requires a model identifier")
        if not self.timestamp:
            raise ValueError("AttemptRecord requires a timestamp")

    @classmethod
    def build(
        cls,
        model: ModelConfig,
        request_payload: Dict[str, Any],
        *,
        response_data: Any = None,
        error: Optional[str] = None,
        clock: Clock = utcnow,
    ) -> "AttemptRecord":
        return cls(
            model=model.name,
            api_url=model.api_url,
            request_payload=request_payload,
            response_data=response_data,
            error=error,
            timestamp=isoformat(clock()),
        )

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model":           self.model,
            "api_url":         self.api_url,
            "request_payload": self.request_payload,
            "response_data":   self.response_data,
            "error":           self.error,
            "timestamp":       self.timestamp,
        }


# ════════════════════════════════════════════════════════════════════════
#                          INVOCATION RESULTS
# ════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class InvocationSuccess:
    model_used:         str
    technique:          Technique
    raw_response:       Any
    success_debug_info: AttemptRecord
    failed_attempts:    Tuple[AttemptRecord, ...] = ()

    ok = True

    def to_payload(self) -> Dict[str, Any]:
        return {
            "modelUsed":        self.model_used,
            "technique":        self.technique.as_dict(),
            "rawResponse":      self.raw_response,
            "successDebugInfo": self.success_debug_info.to_dict(),
        }


@dataclass(frozen=True)
class FailureDebugInfo:
    message:          str
    failed_attempts:  Tuple[AttemptRecord, ...]
    models_attempted: int
    timestamp:        str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message":         self.message,
            "failedAttempts":  [a.to_dict() for a in self.failed_attempts],
            "modelsAttempted": self.models_attempted,
            "timestamp":       self.timestamp,
        }


@dataclass(frozen=True)
class InvocationFailure:
    error:      str
    debug_info: Optional[FailureDebugInfo] = None

    ok = False

    @property
    def failed_attempts(self) -> Tuple[AttemptRecord, ...]:
        return self.debug_info.failed_attempts if self.debug_info else ()

    @property
    def models_attempted(self) -> int:
        return self.debug_info.models_attempted if self.debug_info else 0

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.debug_info is not None:
            payload["debugInfo"] = self.debug_info.to_dict()
        return payload


InvocationResult = Union[InvocationSuccess, InvocationFailure]
