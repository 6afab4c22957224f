"""
aiva.ai.orchestrator
--------------------

FallbackOrchestrator: try the enabled models one after the other, in the
registry's priority order, and stop at the first one that answers.

    Idle ─► TryingModel(0) ─► Succeeded
                 │
                 ▼ (model failed)
            TryingModel(1) ─► … ─► Exhausted

Models are never tried in parallel.

``invoke`` is the function callers use.  It hides retry counts and
provider identities behind a single InvocationResult value, with two
exceptions that are never folded into a failure:

• ``InvocationCancelled``    the caller's ``deadline`` expired
• ``asyncio.CancelledError`` the surrounding task was cancelled
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import Any, Mapping, Optional

from aiva.core.config.model_store import ModelRegistry
from aiva.core.exceptions import ConfigurationError, InvocationCancelled, ParsingError
from aiva.core.models import DEFAULT_RETRY_POLICY, RetryPolicy, Technique, DEFAULT_TECHNIQUE_TITLE
from aiva.ai.diagnostics import DiagnosticsCollector
from aiva.ai.executor import AttemptExecutor
from aiva.ai.parser import parse_technique
from aiva.ai.providers import TextGenerator, default_providers
from aiva.ai.retry import ModelOutcome, RetryController, Sleep
from aiva.ai.types import (
    ALL_MODELS_FAILED,
    Clock,
    FailureDebugInfo,
    InvocationFailure,
    InvocationResult,
    InvocationSuccess,
    isoformat,
    utcnow,
)

log = logging.getLogger(__name__)


class State(Enum):
    IDLE      = auto()
    TRYING    = auto()
    ADVANCE   = auto()
    SUCCEEDED = auto()
    EXHAUSTED = auto()


class FallbackOrchestrator:
    def __init__(
        self,
        registry: ModelRegistry,
        *,
        providers: Optional[Mapping[str, TextGenerator]] = None,
        default_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = utcnow,
    ) -> None:
        self.registry = registry
        self.clock = clock
        self.executor = AttemptExecutor(
            providers if providers is not None else default_providers(), clock=clock
        )
        self.retry = RetryController(self.executor, default_policy=default_policy, sleep=sleep)

    # ---------------------------------------------------------------- public
    async def run(
        self,
        prompt: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> InvocationResult:
        """
        Drive one invocation to Succeeded or Exhausted.

        Raises ConfigurationError before any network activity when the
        registry has no enabled model or a model names an unknown provider.
        """
        models = self.registry.list_enabled_models(context)
        for model in models:
            self.executor.provider(model)

        diagnostics = DiagnosticsCollector()
        state = State.IDLE
        log.info("Invoking pipeline with %d model(s): %s", len(models), [m.name for m in models])

        for i, model in enumerate(models):
            state = State.TRYING
            log.debug("%s(%d): %s", state.name, i, model.name)

            outcome = await self.retry.run(model, prompt, diagnostics)
            if outcome.ok:
                state = State.SUCCEEDED
                log.info("%s with %s after %d attempt(s)", state.name, model.name, outcome.attempts)
                return self._success(outcome, diagnostics)

            state = State.ADVANCE if i + 1 < len(models) else State.EXHAUSTED
            log.info("%s after %s failed: %s", state.name, model.name, outcome.error)

        log.error("All %d LLM model(s) failed", len(models))
        return InvocationFailure(
            error=ALL_MODELS_FAILED,
            debug_info=FailureDebugInfo(
                message=ALL_MODELS_FAILED,
                failed_attempts=diagnostics.failed_attempts,
                models_attempted=len(models),
                timestamp=isoformat(self.clock()),
            ),
        )

    # ---------------------------------------------------------------- helpers
    def _success(self, outcome: ModelOutcome, diagnostics: DiagnosticsCollector) -> InvocationSuccess:
        provider = self.executor.provider(outcome.model)
        try:
            text = provider.extract_text(outcome.response)
        except ParsingError as exc:
            log.warning("Could not read completion from %s: %s", outcome.model.name, exc)
            technique = Technique(DEFAULT_TECHNIQUE_TITLE, "")
        else:
            technique = parse_technique(text)

        return InvocationSuccess(
            model_used=outcome.model.name,
            technique=technique,
            raw_response=outcome.response,
            success_debug_info=outcome.record,
            failed_attempts=diagnostics.failed_attempts,
        )


# ════════════════════════════════════════════════════════════════════════
#                            CALLER ENTRY POINTS
# ════════════════════════════════════════════════════════════════════════
async def invoke(
    prompt: str,
    context: Optional[Mapping[str, Any]] = None,
    *,
    registry: ModelRegistry,
    deadline: Optional[float] = None,
    **orchestrator_kwargs: Any,
) -> InvocationResult:
    """
    Run the pipeline once and return its InvocationResult.

    ``deadline`` (seconds) bounds the whole invocation; when it expires the
    in-flight request or backoff sleep is cancelled and InvocationCancelled
    is raised.
    """
    orchestrator = FallbackOrchestrator(registry, **orchestrator_kwargs)
    try:
        if deadline is None:
            return await orchestrator.run(prompt, context)
        try:
            return await asyncio.wait_for(orchestrator.run(prompt, context), deadline)
        except asyncio.TimeoutError:
            log.error("Invocation cancelled: %.2fs deadline exceeded", deadline)
            raise InvocationCancelled(deadline) from None
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        return InvocationFailure(error=str(exc))


def invoke_sync(
    prompt: str,
    context: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> InvocationResult:
    return asyncio.run(invoke(prompt, context, **kwargs))
