"""
ModelRegistry
=============

• Read-only view over the persisted ``llm_models`` store.
• ``list_enabled_models`` yields enabled models in ``invocation_order``;
  an empty result is a ConfigurationError, never an empty tuple.
• ``list_models`` shows everything, disabled entries included.

The YAML file mirrors one table row per entry:

    - model_name: mistral-7b-instruct
      api_url: https://api-inference.huggingface.co/models/mistralai/Mistral-7B-Instruct-v0.2
      api_key_env: HUGGING_FACE_API_KEY
      invocation_order: 1
      enabled: true
      parameters: {max_new_tokens: 1024, temperature: 0.7}
      retry: {max_attempts: 3, initial_delay: 1.0, backoff_multiplier: 2}
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Tuple

import yaml

from aiva.core.exceptions import NO_MODELS_AVAILABLE, ConfigurationError
from aiva.core.models import GenerationParams, ModelConfig, RetryPolicy

log = logging.getLogger(__name__)

KNOWN_PROVIDERS = ("huggingface", "openai")


class ModelRegistry(Protocol):
    def list_enabled_models(
        self, context: Optional[Mapping[str, Any]] = None
    ) -> Tuple[ModelConfig, ...]:
        """Enabled models in priority order; raises ConfigurationError if none."""

    def list_models(self) -> Tuple[ModelConfig, ...]:
        """Every configured model, enabled or not."""


def select_enabled(
    models: Iterable[ModelConfig],
    context: Optional[Mapping[str, Any]] = None,
) -> Tuple[ModelConfig, ...]:
    chosen = [m for m in models if m.enabled]

    wanted = (context or {}).get("models")
    if wanted:
        if isinstance(wanted, str):
            wanted = [wanted]
        chosen = [m for m in chosen if any(m.matches(w) for w in wanted)]

    if not chosen:
        log.error("No enabled LLM models found")
        raise ConfigurationError(NO_MODELS_AVAILABLE)

    # sorted() is stable, ties keep store order
    return tuple(sorted(chosen, key=lambda m: m.priority))


# ════════════════════════════════════════════════════════════════════════
#                           IN-MEMORY REGISTRY
# ════════════════════════════════════════════════════════════════════════
class StaticModelRegistry:
    def __init__(self, models: Iterable[ModelConfig] = ()) -> None:
        self._models = tuple(models)

    def list_enabled_models(self, context=None) -> Tuple[ModelConfig, ...]:
        return select_enabled(self._models, context)

    def list_models(self) -> Tuple[ModelConfig, ...]:
        return tuple(sorted(self._models, key=lambda m: m.priority))

    def __repr__(self) -> str:
        return f"<StaticModelRegistry {len(self._models)} model(s)>"


# ════════════════════════════════════════════════════════════════════════
#                             YAML REGISTRY
# ════════════════════════════════════════════════════════════════════════
class YamlModelRegistry:
    def __init__(
        self,
        path: str | Path,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.path = Path(path)
        self._environ = environ if environ is not None else os.environ

    # ----------------------------------------------------------------- public API
    def list_enabled_models(self, context=None) -> Tuple[ModelConfig, ...]:
        return select_enabled(self._load(), context)

    def list_models(self) -> Tuple[ModelConfig, ...]:
        return tuple(sorted(self._load(), key=lambda m: m.priority))

    # ---------------------------------------------------------------- helpers
    def _load(self) -> Tuple[ModelConfig, ...]:
        # always re-read to pick up out-of-process edits
        if not self.path.exists():
            raise ConfigurationError(f"Model store {self.path} not found")
        with open(self.path, "r") as fp:
            try:
                raw = yaml.safe_load(fp)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Model store {self.path} is not valid YAML: {exc}") from exc

        if isinstance(raw, dict):
            raw = raw.get("models")
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise ConfigurationError(f"Model store {self.path} must hold a list of models")

        return tuple(
            model_from_mapping(entry, environ=self._environ, index=i)
            for i, entry in enumerate(raw)
        )

    def __repr__(self) -> str:
        return f"<YamlModelRegistry {self.path}>"


def model_from_mapping(
    entry: Mapping[str, Any],
    *,
    environ: Mapping[str, str] = os.environ,
    index: int = 0,
) -> ModelConfig:
    """Build a ModelConfig from one store row."""
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"Model entry #{index} is not a mapping")

    name = entry.get("model_name") or entry.get("name")
    api_url = entry.get("api_url")
    if not name or not api_url:
        raise ConfigurationError(f"Model entry #{index} needs model_name and api_url")

    provider = entry.get("provider", "huggingface")
    if provider not in KNOWN_PROVIDERS:
        raise ConfigurationError(f"Model {name!r}: unknown provider {provider!r}")

    api_key = entry.get("api_key")
    if not api_key and entry.get("api_key_env"):
        api_key = environ.get(entry["api_key_env"], "")
        if not api_key:
            log.warning("Model %s: %s is not set", name, entry["api_key_env"])

    try:
        params = GenerationParams(**(entry.get("parameters") or {}))
        retry = RetryPolicy(**entry["retry"]) if entry.get("retry") else None
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Model {name!r}: {exc}") from exc

    kwargs: Dict[str, Any] = {}
    if entry.get("timeout") is not None:
        kwargs["timeout"] = float(entry["timeout"])

    return ModelConfig(
        name=str(name),
        api_url=str(api_url),
        api_key=str(api_key or ""),
        provider=provider,
        priority=int(entry.get("invocation_order", entry.get("priority", index))),
        enabled=bool(entry.get("enabled", True)),
        params=params,
        retry=retry,
        id=str(entry["id"]) if entry.get("id") is not None else None,
        **kwargs,
    )
