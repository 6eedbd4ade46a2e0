"""
Prompt compilation for supported document types.
"""

from .base import PromptPair
from .registry import (
    DocumentType,
    DocumentTypeRegistry,
    SignatureLayout,
    compile_prompt,
    get_registry,
    register_document_type,
)

__all__ = [
    "DocumentType",
    "DocumentTypeRegistry",
    "PromptPair",
    "SignatureLayout",
    "compile_prompt",
    "get_registry",
    "register_document_type",
]
