"""Model backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncGenerator

from .llm_request import LlmRequest
from .llm_response import LlmResponse


class BaseLlm(ABC):
    """A model client: turns one request into a stream of responses.

    With ``stream=True`` implementations yield ``partial`` chunks followed by
    a final aggregated response; otherwise a single response.
    """

    def __init__(self, model: str) -> None:
        self.model = model

    @classmethod
    def supported_models(cls) -> list[str]:
        return []

    @abstractmethod
    def generate_content_async(
        self, llm_request: LlmRequest, stream: bool = False
    ) -> AsyncGenerator[LlmResponse, None]: ...
