"""
aiva.core.exceptions
====================

Error taxonomy shared by the invocation pipeline.

    AivaError
    ├── ConfigurationError       no usable model configuration (fatal)
    ├── AttemptError             one failed network attempt
    │   ├── AttemptTimeout       deadline exceeded           (transient)
    │   ├── NetworkError         transport failure           (transient)
    │   └── HTTPError            non-2xx status   (429/5xx transient, else permanent)
    ├── ParsingError             unreadable completion (resolved by defaults)
    └── InvocationCancelled      caller deadline hit
"""

from __future__ import annotations

from typing import Any


class AivaError(Exception):
    """Base class for every error raised by aiva."""


NO_MODELS_AVAILABLE = "no models available"


class ConfigurationError(AivaError):
    """The model store yielded nothing usable."""


# ════════════════════════════════════════════════════════════════════════
#                            ATTEMPT ERRORS
# ════════════════════════════════════════════════════════════════════════
class AttemptError(AivaError):
    """A single call against one model endpoint failed."""

    #: payload worth keeping in the attempt record (error body, …)
    response_data: Any = None

    @property
    def transient(self) -> bool:
        return True

    def describe(self) -> str:
        return str(self)


class AttemptTimeout(AttemptError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s")


class NetworkError(AttemptError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Network error: {reason}")


class HTTPError(AttemptError):
    def __init__(self, status: int, body: Any = None):
        self.status = status
        self.body = body
        self.response_data = body
        text = body if isinstance(body, str) else _compact(body)
        super().__init__(f"API error ({status}): {text}" if text else f"API error ({status})")

    @property
    def transient(self) -> bool:
        return self.status == 429 or self.status >= 500


def is_transient(exc: BaseException) -> bool:
    """Retry predicate: only transient AttemptErrors are retried in place."""
    return isinstance(exc, AttemptError) and exc.transient


def _compact(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return repr(body)


# ════════════════════════════════════════════════════════════════════════
#                              OTHER
# ════════════════════════════════════════════════════════════════════════
class ParsingError(AivaError):
    """Model output had an unexpected shape."""


class InvocationCancelled(AivaError):
    """The caller's deadline expired before the pipeline reached a verdict."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"Invocation cancelled after {deadline:g}s deadline")
