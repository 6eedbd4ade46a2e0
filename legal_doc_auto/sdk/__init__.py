"""
Generation backends for legal-doc-auto.

Provider strategies, the never-failing local stub, and the fallback router.
"""

from .backends import AnthropicBackend, GeminiBackend, GenerationBackend, OpenAIBackend
from .router import GenerationResult, GenerationRouter, build_router
from .stub import LocalStubBackend

__all__ = [
    "AnthropicBackend",
    "GeminiBackend",
    "GenerationBackend",
    "GenerationResult",
    "GenerationRouter",
    "LocalStubBackend",
    "OpenAIBackend",
    "build_router",
]
