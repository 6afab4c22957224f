"""
Global test fixtures.

• ScriptedProvider replays a per-model list of responses / errors so the
  pipeline runs without network traffic.
• RecordingSleep stands in for asyncio.sleep and remembers every backoff.
• A fixed clock makes AttemptRecord timestamps reproducible.
• AIVA_* variables from the developer's shell never leak into tests.
"""
from datetime import datetime, timezone

import pytest

from aiva.ai.parser import extract_generated_text
from aiva.core.models import ModelConfig, RetryPolicy

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


class ScriptedProvider:
    """
    script = {"model-x": [HTTPError(429), [{"generated_text": "…"}]]}

    Outcomes are consumed in order; the last one repeats forever.
    Exceptions are raised, anything else is returned as the response.
    """
    name = "scripted"

    def __init__(self, script):
        self.script = {k: list(v) for k, v in script.items()}
        self.calls = []

    def build_payload(self, model, prompt):
        return {"inputs": prompt, "parameters": model.params.as_dict()}

    async def send(self, model, payload):
        self.calls.append(model.name)
        queue = self.script[model.name]
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def extract_text(self, response):
        return extract_generated_text(response)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def mk_model(name: str, priority: int = 0, **kw) -> ModelConfig:
    kw.setdefault("provider", "scripted")
    kw.setdefault("api_url", f"https://api.test.com/{name}")
    return ModelConfig(
        name=name,
        api_key="test-key-1234567890",
        priority=priority,
        **kw,
    )


ONE_SHOT = RetryPolicy(max_attempts=1)


def generated(text: str):
    return [{"generated_text": text}]


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("AIVA_CONF", "AIVA_MODELS_FILE", "AIVA_LOG_LEVEL", "AIVA_DEADLINE"):
        monkeypatch.delenv(key, raising=False)
    yield
