import asyncio
import json

import httpx
import pytest

from aiva.ai.executor import AttemptExecutor
from aiva.ai.providers import HuggingFaceProvider, OpenAIChatProvider
from aiva.core.exceptions import AttemptTimeout, HTTPError, NetworkError

from conftest import fixed_clock, mk_model

HF_URL = "https://api-inference.huggingface.co/models/mistralai/Mistral-7B-Instruct-v0.2"


def hf_model(**kw):
    kw.setdefault("api_url", HF_URL)
    return mk_model("mistral", provider="huggingface", **kw)


def execute(model, handler, prompt="Test prompt", provider_cls=HuggingFaceProvider):
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = provider_cls(client)
            executor = AttemptExecutor({provider.name: provider}, clock=fixed_clock)
            return await executor.execute(model, prompt)

    return asyncio.run(_go())


# ---------------------------------------------------------------- hugging face
def test_hf_request_shape_and_success_record():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"generated_text": "Pomodoro Technique\nFocus."}])

    model = mk_model("mistral", provider="huggingface")
    outcome = execute(model, handler)

    assert outcome.ok
    assert seen["auth"] == "Bearer test-key-1234567890"
    assert seen["body"] == {
        "inputs": "Test prompt",
        "parameters": {"max_new_tokens": 1024, "temperature": 0.7, "top_p": 0.9, "do_sample": True},
    }
    rec = outcome.record
    assert rec.request_payload == seen["body"]
    assert rec.response_data == [{"generated_text": "Pomodoro Technique\nFocus."}]
    assert rec.error is None
    assert rec.model == "mistral"
    assert rec.timestamp == "2024-01-01T12:00:00.000Z"


def test_hf_error_status_becomes_http_error():
    def handler(request):
        return httpx.Response(429, json={"error": "Rate limit exceeded"})

    outcome = execute(hf_model(), handler)

    assert isinstance(outcome.error, HTTPError)
    assert outcome.error.status == 429
    assert outcome.record.error == "API error (429): Rate limit exceeded"
    assert outcome.record.response_data == {"error": "Rate limit exceeded"}


def test_hf_plain_text_error_body():
    def handler(request):
        return httpx.Response(503, text="Service Unavailable")

    outcome = execute(hf_model(), handler)

    assert outcome.record.error == "API error (503): Service Unavailable"


def test_hf_connection_failure_becomes_network_error():
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    outcome = execute(hf_model(), handler)

    assert isinstance(outcome.error, NetworkError)
    assert outcome.record.error == "Network error: Connection refused"
    assert outcome.record.response_data is None


def test_hf_read_timeout_becomes_attempt_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    outcome = execute(hf_model(timeout=5), handler)

    assert isinstance(outcome.error, AttemptTimeout)
    assert outcome.record.error == "Request timed out after 5s"


def test_slow_provider_is_cut_off_at_model_timeout():
    class Slow:
        name = "slow"

        def build_payload(self, model, prompt):
            return {"inputs": prompt}

        async def send(self, model, payload):
            await asyncio.sleep(10)

        def extract_text(self, response):
            return ""

    model = mk_model("sloth", provider="slow", timeout=0.01)
    executor = AttemptExecutor({"slow": Slow()}, clock=fixed_clock)

    outcome = asyncio.run(executor.execute(model, "prompt"))

    assert isinstance(outcome.error, AttemptTimeout)
    assert outcome.record.failed


# ---------------------------------------------------------------- openai-compatible
CHAT_COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 0,
    "model": "gpt-4o-mini",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Body Doubling\nWork next to a friend."},
            "finish_reason": "stop",
        }
    ],
}


def openai_model():
    return mk_model("gpt-4o-mini", provider="openai", api_url="https://llm.test/v1")


def test_openai_chat_completion_success():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=CHAT_COMPLETION)

    outcome = execute(openai_model(), handler, provider_cls=OpenAIChatProvider)

    assert outcome.ok
    assert seen["path"] == "/v1/chat/completions"
    assert seen["body"]["messages"] == [{"role": "user", "content": "Test prompt"}]
    assert seen["body"]["max_tokens"] == 1024
    provider = OpenAIChatProvider()
    assert provider.extract_text(outcome.response) == "Body Doubling\nWork next to a friend."


def test_openai_status_error_maps_to_http_error():
    def handler(request):
        return httpx.Response(429, json={"error": {"message": "slow down", "type": "rate_limit"}})

    outcome = execute(openai_model(), handler, provider_cls=OpenAIChatProvider)

    assert isinstance(outcome.error, HTTPError)
    assert outcome.error.status == 429
    assert outcome.error.transient


@pytest.mark.parametrize("status, transient", [(400, False), (500, True)])
def test_openai_status_classification(status, transient):
    def handler(request):
        return httpx.Response(status, json={"error": {"message": "nope"}})

    outcome = execute(openai_model(), handler, provider_cls=OpenAIChatProvider)

    assert outcome.error.status == status
    assert outcome.error.transient is transient
