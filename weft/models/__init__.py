"""Model client abstractions."""

from .base_llm import BaseLlm
from .llm_request import FunctionDeclaration, GenerateContentConfig, LlmRequest
from .llm_response import LlmResponse, UsageMetadata
from .mock import MockLlm
from .registry import LlmRegistry

__all__ = [
    "BaseLlm",
    "FunctionDeclaration",
    "GenerateContentConfig",
    "LlmRegistry",
    "LlmRequest",
    "LlmResponse",
    "MockLlm",
    "UsageMetadata",
]
