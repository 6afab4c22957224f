from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class GenerationParams:
    max_new_tokens: int   = 1024
    temperature:    float = 0.7
    top_p:          float = 0.9
    do_sample:      bool  = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "max_new_tokens": self.max_new_tokens,
            "temperature":    self.temperature,
            "top_p":          self.top_p,
            "do_sample":      self.do_sample,
        }


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Per-model retry budget. Delays are in seconds; the wait before
    attempt k (k >= 2) is ``initial_delay * backoff_multiplier ** (k - 2)``.
    """
    max_attempts:       int   = 3
    initial_delay:      float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {self.initial_delay}")
        if self.backoff_multiplier < 1:
            raise ValueError(
                f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}"
            )

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before the given 1-based attempt."""
        if attempt <= 1:
            return 0.0
        return self.initial_delay * self.backoff_multiplier ** (attempt - 2)


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True, slots=True)
class ModelConfig:
    name:     str
    api_url:  str
    api_key:  str              = field(default="", repr=False)
    provider: str              = "huggingface"
    priority: int              = 0
    enabled:  bool             = True
    params:   GenerationParams = field(default_factory=GenerationParams)
    retry:    Optional[RetryPolicy] = None
    timeout:  float            = 30.0
    id:       Optional[str]    = None

    def retry_policy(self, default: RetryPolicy = DEFAULT_RETRY_POLICY) -> RetryPolicy:
        return self.retry or default

    def matches(self, key: str) -> bool:
        return key == self.name or (self.id is not None and key == self.id)

    def __str__(self) -> str:
        return f"{self.name} ({self.provider}, #{self.priority})"
