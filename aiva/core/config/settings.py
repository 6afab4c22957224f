"""
Settings
========

Resolution order, highest first:

1. Explicit kwargs to ``Settings.load(...)``
2. Environment variables
      AIVA_MODELS_FILE   path of the model store   (models.yaml)
      AIVA_LOG_LEVEL     logging level              (INFO)
      AIVA_DEADLINE      per-invocation deadline, seconds
3. YAML file named by ``AIVA_CONF`` (default ``.aiva-conf.yaml`` in cwd)
      models_file: models.yaml
      log_level: DEBUG
      deadline: 90
      retry: {max_attempts: 3, initial_delay: 1.0, backoff_multiplier: 2}
4. Built-in defaults
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from aiva.core.exceptions import ConfigurationError
from aiva.core.models import DEFAULT_RETRY_POLICY, RetryPolicy
from aiva.core.config.model_store import YamlModelRegistry

DEFAULT_CONF = ".aiva-conf.yaml"


@dataclass(frozen=True)
class Settings:
    models_file: Path                 = Path("models.yaml")
    log_level:   str                  = "INFO"
    deadline:    Optional[float]      = None
    retry:       RetryPolicy          = field(default_factory=lambda: DEFAULT_RETRY_POLICY)

    @classmethod
    def load(
        cls,
        *,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "Settings":
        env = os.environ if environ is None else environ
        conf = _read_conf(Path(env.get("AIVA_CONF", DEFAULT_CONF)))

        def pick(key: str, env_key: str, default: Any) -> Any:
            if overrides.get(key) is not None:
                return overrides[key]
            if env.get(env_key):
                return env[env_key]
            if conf.get(key) is not None:
                return conf[key]
            return default

        deadline = pick("deadline", "AIVA_DEADLINE", None)
        try:
            retry = overrides.get("retry") or (
                RetryPolicy(**conf["retry"]) if conf.get("retry") else DEFAULT_RETRY_POLICY
            )
            deadline = float(deadline) if deadline is not None else None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid settings: {exc}") from exc

        log_level = str(pick("log_level", "AIVA_LOG_LEVEL", "INFO")).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"Unknown log level {log_level!r}")

        return cls(
            models_file=Path(pick("models_file", "AIVA_MODELS_FILE", "models.yaml")),
            log_level=log_level,
            deadline=deadline,
            retry=retry,
        )

    def registry(self) -> YamlModelRegistry:
        return YamlModelRegistry(self.models_file)


def _read_conf(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r") as fp:
        try:
            data = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must be a YAML mapping")
    return data
