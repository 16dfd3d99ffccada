"""Processors and flows driving LLM-backed agents."""

from .auto_flow import AutoFlow
from .base_llm_flow import BaseLlmFlow
from .single_flow import SingleFlow

__all__ = ["AutoFlow", "BaseLlmFlow", "SingleFlow"]
