"""
Turn a raw completion into a Technique.

Parsing never fails the invocation; anything unexpected collapses to the
default title.
"""

from __future__ import annotations

import logging
from typing import Any

from aiva.core.exceptions import ParsingError
from aiva.core.models import Technique, DEFAULT_TECHNIQUE_TITLE

log = logging.getLogger(__name__)

ASSISTANT_MARKER = "Assistant:"


def extract_generated_text(response: Any) -> str:
    """
    Pull the generated text out of a provider payload.

    Understands the Hugging Face inference shapes
    (``[{"generated_text": ...}]`` and ``{"generated_text": ...}``),
    OpenAI chat completions and plain strings.
    """
    if isinstance(response, str):
        return response
    if isinstance(response, list):
        if not response:
            return ""
        return extract_generated_text(response[0])
    if isinstance(response, dict):
        if "generated_text" in response:
            return str(response["generated_text"] or "")
        choices = response.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[-1].get("message") or {}
            return str(message.get("content") or choices[-1].get("text") or "")
    raise ParsingError(f"Unrecognised completion payload: {type(response).__name__}")


def strip_assistant_prefix(text: str) -> str:
    """Keep only what follows the last ``Assistant:`` marker, if any."""
    if ASSISTANT_MARKER in text:
        return text.rsplit(ASSISTANT_MARKER, 1)[-1].strip()
    return text


def parse_technique(text: Any) -> Technique:
    if not isinstance(text, str):
        log.warning("Completion is %s, using default technique", type(text).__name__)
        return Technique(DEFAULT_TECHNIQUE_TITLE, "")

    title, _, rest = text.partition("\n")
    title = title.strip()
    if not title:
        title = DEFAULT_TECHNIQUE_TITLE
    return Technique(title=title, description=rest.strip())
