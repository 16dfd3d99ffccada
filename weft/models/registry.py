"""Name-based registry resolving model strings to client classes."""

from __future__ import annotations

import logging
import re

from .base_llm import BaseLlm

logger = logging.getLogger(__name__)


class LlmRegistry:
    _registry: dict[str, type[BaseLlm]] = {}

    @classmethod
    def register(cls, llm_cls: type[BaseLlm]) -> type[BaseLlm]:
        for pattern in llm_cls.supported_models():
            if pattern in cls._registry:
                logger.warning(
                    "Model pattern %s re-registered: %s replaces %s",
                    pattern, llm_cls.__name__, cls._registry[pattern].__name__,
                )
            cls._registry[pattern] = llm_cls
        return llm_cls

    @classmethod
    def resolve(cls, model: str) -> type[BaseLlm]:
        for pattern, llm_cls in cls._registry.items():
            if re.fullmatch(pattern, model):
                return llm_cls
        raise ValueError(f"Model {model} not found.")

    @classmethod
    def new_llm(cls, model: str) -> BaseLlm:
        return cls.resolve(model)(model=model)
