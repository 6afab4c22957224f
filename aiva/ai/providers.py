"""
aiva.ai.providers
-----------------

One ``TextGenerator`` per provider shape.  The executor never branches on
provider identity; it asks the provider for a payload, hands it back to
``send`` and lets the provider translate its own failures into the
AttemptError hierarchy.

Shapes
~~~~~~
• huggingface : POST {inputs, parameters} with a bearer token (raw httpx)
• openai      : chat completion through the official SDK, any
                OpenAI-compatible base URL
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
from openai import AsyncOpenAI
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
)

from aiva.core.exceptions import AttemptTimeout, ConfigurationError, HTTPError, NetworkError
from aiva.core.models import ModelConfig
from aiva.ai.parser import extract_generated_text

log = logging.getLogger(__name__)


class TextGenerator(Protocol):
    name: str

    def build_payload(self, model: ModelConfig, prompt: str) -> Dict[str, Any]:
        """Exact request body for this provider."""

    async def send(self, model: ModelConfig, payload: Dict[str, Any]) -> Any:
        """Issue one call; raise an AttemptError subclass on failure."""

    def extract_text(self, response: Any) -> str:
        """Generated text from a successful response."""


# ════════════════════════════════════════════════════════════════════════
#                             HUGGING FACE
# ════════════════════════════════════════════════════════════════════════
class HuggingFaceProvider:
    name = "huggingface"

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._client = client

    def build_payload(self, model: ModelConfig, prompt: str) -> Dict[str, Any]:
        return {"inputs": prompt, "parameters": model.params.as_dict()}

    async def send(self, model: ModelConfig, payload: Dict[str, Any]) -> Any:
        headers = {
            "Authorization": f"Bearer {model.api_key}",
            "Content-Type":  "application/json",
        }
        try:
            if self._client is not None:
                resp = await self._client.post(
                    model.api_url, json=payload, headers=headers, timeout=model.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=model.timeout) as client:
                    resp = await client.post(model.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise AttemptTimeout(model.timeout) from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        body = _decode_body(resp)
        if not resp.is_success:
            log.error("API error response for %s: %s %s", model.name, resp.status_code, body)
            raise HTTPError(resp.status_code, body)
        return body

    def extract_text(self, response: Any) -> str:
        return extract_generated_text(response)


def _decode_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.text


# ════════════════════════════════════════════════════════════════════════
#                         OPENAI-COMPATIBLE CHAT
# ════════════════════════════════════════════════════════════════════════
class OpenAIChatProvider:
    name = "openai"

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self._http_client = http_client

    def build_payload(self, model: ModelConfig, prompt: str) -> Dict[str, Any]:
        p = model.params
        return {
            "model":       model.name,
            "messages":    [{"role": "user", "content": prompt}],
            "max_tokens":  p.max_new_tokens,
            "temperature": p.temperature,
            "top_p":       p.top_p,
        }

    async def send(self, model: ModelConfig, payload: Dict[str, Any]) -> Any:
        # retries belong to the RetryController, never to the SDK
        client = AsyncOpenAI(
            api_key=model.api_key,
            base_url=model.api_url,
            timeout=model.timeout,
            max_retries=0,
            http_client=self._http_client,
        )
        try:
            resp = await client.chat.completions.create(**payload)
        except APITimeoutError as exc:
            raise AttemptTimeout(model.timeout) from exc
        except APIConnectionError as exc:
            raise NetworkError(str(exc)) from exc
        except APIStatusError as exc:
            body = exc.body if exc.body is not None else exc.response.text
            raise HTTPError(exc.status_code, body) from exc
        finally:
            if self._http_client is None:
                await client.close()
        return resp.model_dump()

    def extract_text(self, response: Any) -> str:
        return extract_generated_text(response)


# ════════════════════════════════════════════════════════════════════════
#                               LOOKUP
# ════════════════════════════════════════════════════════════════════════
def default_providers(http_client: Optional[httpx.AsyncClient] = None) -> Dict[str, TextGenerator]:
    return {
        HuggingFaceProvider.name: HuggingFaceProvider(http_client),
        OpenAIChatProvider.name:  OpenAIChatProvider(http_client),
    }


def provider_for(model: ModelConfig, providers: Mapping[str, TextGenerator]) -> TextGenerator:
    try:
        return providers[model.provider]
    except KeyError:
        raise ConfigurationError(
            f"model {model.name!r} uses unknown provider {model.provider!r}"
        ) from None
