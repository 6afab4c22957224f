"""
RetryController
===============

Runs the AttemptExecutor for a single model under its RetryPolicy.

• transient errors (timeout, network, 429, 5xx) are retried in place
• permanent errors (other 4xx) end the model immediately
• the wait before attempt k is initial_delay * multiplier ** (k - 2)

The loop is tenacity's ``AsyncRetrying``; ``sleep`` is injectable so tests
can observe the backoff schedule without waiting on real timers.  The
default ``asyncio.sleep`` wakes up immediately when the task is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from aiva.core.exceptions import AttemptError, is_transient
from aiva.core.models import DEFAULT_RETRY_POLICY, ModelConfig, RetryPolicy
from aiva.ai.diagnostics import DiagnosticsCollector
from aiva.ai.executor import AttemptExecutor
from aiva.ai.types import AttemptRecord

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class ModelOutcome:
    model:    ModelConfig
    attempts: int
    record:   Optional[AttemptRecord] = None
    response: Any                     = None
    error:    Optional[AttemptError]  = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RetryController:
    def __init__(
        self,
        executor: AttemptExecutor,
        *,
        default_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.executor = executor
        self.default_policy = default_policy
        self.sleep = sleep

    def _retrying(self, model: ModelConfig, policy: RetryPolicy) -> AsyncRetrying:
        def _before_sleep(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            log.info(
                "Retrying %s (attempt %d/%d failed: %s). Delay: %.2fs",
                model.name,
                state.attempt_number,
                policy.max_attempts,
                exc,
                state.next_action.sleep if state.next_action else 0.0,
            )

        return AsyncRetrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_exponential(
                multiplier=policy.initial_delay,
                exp_base=policy.backoff_multiplier,
            ),
            retry=retry_if_exception(is_transient),
            sleep=self.sleep,
            before_sleep=_before_sleep,
            reraise=True,
        )

    async def run(
        self,
        model: ModelConfig,
        prompt: str,
        diagnostics: DiagnosticsCollector,
    ) -> ModelOutcome:
        policy = model.retry_policy(self.default_policy)
        attempts = 0
        response: Any = None
        last: Optional[AttemptRecord] = None

        try:
            async for attempt in self._retrying(model, policy):
                with attempt:
                    attempts += 1
                    outcome = await self.executor.execute(model, prompt)
                    diagnostics.record(outcome.record)
                    last = outcome.record
                    if outcome.error is not None:
                        raise outcome.error
                    response = outcome.response
        except AttemptError as exc:
            if exc.transient:
                log.warning("%s failed after %d attempt(s): %s", model.name, attempts, exc)
            else:
                log.warning("%s failed with a permanent error: %s", model.name, exc)
            return ModelOutcome(model=model, attempts=attempts, record=last, error=exc)

        return ModelOutcome(model=model, attempts=attempts, record=last, response=response)
