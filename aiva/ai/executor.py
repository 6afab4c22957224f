"""
AttemptExecutor
===============

Exactly one call against one model.  No retries, no state: the outcome and
the AttemptRecord describing it are returned to the caller.

Caller cancellation (``asyncio.CancelledError``) is not caught; it aborts the
in-flight request and unwinds the whole invocation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from aiva.core.exceptions import AttemptError, AttemptTimeout
from aiva.core.models import ModelConfig
from aiva.ai.curl import build_curl_command
from aiva.ai.providers import TextGenerator, provider_for
from aiva.ai.types import AttemptRecord, Clock, utcnow

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptOutcome:
    record:   AttemptRecord
    response: Any                    = None
    error:    Optional[AttemptError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AttemptExecutor:
    def __init__(self, providers: Mapping[str, TextGenerator], *, clock: Clock = utcnow) -> None:
        self.providers = providers
        self.clock = clock

    def provider(self, model: ModelConfig) -> TextGenerator:
        return provider_for(model, self.providers)

    async def execute(self, model: ModelConfig, prompt: str) -> AttemptOutcome:
        provider = self.provider(model)
        payload = provider.build_payload(model, prompt)

        log.info("Calling %s at %s", model.name, model.api_url)
        log.debug("Test with curl (API key masked):\n%s", build_curl_command(model, payload))

        try:
            response = await asyncio.wait_for(provider.send(model, payload), model.timeout)
        except asyncio.TimeoutError:
            error: AttemptError = AttemptTimeout(model.timeout)
        except AttemptError as exc:
            error = exc
        else:
            log.debug("Successful response from %s: %.200s", model.name, response)
            record = AttemptRecord.build(
                model, payload, response_data=response, clock=self.clock
            )
            return AttemptOutcome(record=record, response=response)

        log.warning("Error calling %s: %s", model.name, error.describe())
        record = AttemptRecord.build(
            model,
            payload,
            response_data=error.response_data,
            error=error.describe(),
            clock=self.clock,
        )
        return AttemptOutcome(record=record, error=error)
