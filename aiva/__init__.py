"""aiva - multi-model LLM invocation with retry, fallback and attempt diagnostics."""

import logging

from .ai.orchestrator import FallbackOrchestrator, invoke, invoke_sync
from .ai.types import AttemptRecord, InvocationFailure, InvocationSuccess
from .core.config.model_store import StaticModelRegistry, YamlModelRegistry
from .core.exceptions import ConfigurationError, InvocationCancelled
from .core.models import GenerationParams, ModelConfig, RetryPolicy, Technique

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "FallbackOrchestrator",
    "invoke",
    "invoke_sync",
    "AttemptRecord",
    "InvocationSuccess",
    "InvocationFailure",
    "StaticModelRegistry",
    "YamlModelRegistry",
    "ConfigurationError",
    "InvocationCancelled",
    "GenerationParams",
    "ModelConfig",
    "RetryPolicy",
    "Technique",
]

__version__ = "0.1.0"
