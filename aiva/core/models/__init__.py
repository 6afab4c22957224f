from .model_config import GenerationParams, RetryPolicy, ModelConfig, DEFAULT_RETRY_POLICY
from .technique    import Technique, DEFAULT_TECHNIQUE_TITLE

__all__ = [
    "GenerationParams",
    "RetryPolicy",
    "ModelConfig",
    "DEFAULT_RETRY_POLICY",
    "Technique",
    "DEFAULT_TECHNIQUE_TITLE",
]
