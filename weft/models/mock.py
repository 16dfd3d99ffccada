"""Scripted model client for tests and dry runs."""

from __future__ import annotations

import asyncio
import copy
from typing import AsyncGenerator, Union

from ..types import Content, Part
from .base_llm import BaseLlm
from .llm_request import LlmRequest
from .llm_response import LlmResponse
from .registry import LlmRegistry

ScriptItem = Union[str, Part, LlmResponse, list, Exception]


@LlmRegistry.register
class MockLlm(BaseLlm):
    """Replays scripted responses, one per model call.

    Each script item is a string (plain text), a ``Part``, an ``LlmResponse``,
    a list of strings (streamed as chunks when ``stream=True``), or an
    exception to raise. Once the script runs out, the last item repeats.
    """

    def __init__(
        self,
        responses: list[ScriptItem] | None = None,
        model: str = "mock",
        delay: float = 0.0,
    ) -> None:
        super().__init__(model)
        self.responses = list(responses or ["ok"])
        self.delay = delay
        self.requests: list[LlmRequest] = []
        self._cursor = 0

    @classmethod
    def supported_models(cls) -> list[str]:
        return [r"mock(-.*)?"]

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def _next_item(self) -> ScriptItem:
        item = self.responses[min(self._cursor, len(self.responses) - 1)]
        self._cursor += 1
        return item

    async def generate_content_async(
        self, llm_request: LlmRequest, stream: bool = False
    ) -> AsyncGenerator[LlmResponse, None]:
        self.requests.append(
            LlmRequest(
                model=llm_request.model,
                contents=copy.deepcopy(llm_request.contents),
                config=copy.deepcopy(llm_request.config),
                tools_dict=dict(llm_request.tools_dict),
            )
        )
        item = self._next_item()
        await asyncio.sleep(self.delay)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, LlmResponse):
            yield copy.deepcopy(item)
            return
        if isinstance(item, Part):
            yield LlmResponse(content=Content(role="model", parts=[copy.deepcopy(item)]))
            return
        if isinstance(item, list):
            if stream:
                for chunk in item:
                    yield LlmResponse(content=Content.from_text(chunk, role="model"), partial=True)
                    await asyncio.sleep(0)
            yield LlmResponse(
                content=Content.from_text("".join(item), role="model"), turn_complete=True
            )
            return
        yield LlmResponse(content=Content.from_text(str(item), role="model"), turn_complete=True)
