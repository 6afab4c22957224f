"""Reproduce a model call from a terminal, without leaking the credential."""

from __future__ import annotations

import json
from typing import Any, Dict

from aiva.core.models import ModelConfig


def mask_secret(secret: str) -> str:
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def build_curl_command(
    model: ModelConfig,
    payload: Dict[str, Any],
    *,
    show_key: bool = False,
) -> str:
    key = model.api_key if show_key else mask_secret(model.api_key)
    body = json.dumps(payload).replace("'", "'\\''")
    url = model.api_url
    if model.provider == "openai":
        url = url.rstrip("/") + "/chat/completions"
    return (
        f"curl -X POST {url} \\\n"
        f'  -H "Authorization: Bearer {key}" \\\n'
        f'  -H "Content-Type: application/json" \\\n'
        f"  -d '{body}'"
    )
