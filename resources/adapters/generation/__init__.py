"""Generation adapter resource for the external text generation service."""

from resources.adapters.generation.adapter import (
    GenerationAdapter,
    GenerationError,
    GenerationHealthResult,
    GenerationModelInfo,
    GenerationRejectedError,
    GenerationResult,
    GenerationTimeoutError,
    GenerationUnavailableError,
)
from resources.adapters.generation.gemini_adapter import GeminiGenerationAdapter

__all__ = [
    "GeminiGenerationAdapter",
    "GenerationAdapter",
    "GenerationError",
    "GenerationHealthResult",
    "GenerationModelInfo",
    "GenerationRejectedError",
    "GenerationResult",
    "GenerationTimeoutError",
    "GenerationUnavailableError",
]
