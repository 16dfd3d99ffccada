"""Request and response processor interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, AsyncGenerator

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...events import Event
    from ...models.llm_request import LlmRequest
    from ...models.llm_response import LlmResponse


class BaseLlmRequestProcessor(ABC):
    """Mutates the outgoing request; may emit side-channel events."""

    @abstractmethod
    def run_async(
        self, ctx: InvocationContext, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]: ...


class BaseLlmRequestMutator(BaseLlmRequestProcessor):
    """A request processor that never emits events; override ``process``."""

    async def run_async(
        self, ctx: InvocationContext, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]:
        await self.process(ctx, llm_request)
        return
        yield  # pragma: no cover

    @abstractmethod
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None: ...


class BaseLlmResponseProcessor(ABC):
    """Inspects or rewrites the model response; may emit side-channel events."""

    @abstractmethod
    def run_async(
        self, ctx: InvocationContext, llm_response: LlmResponse
    ) -> AsyncGenerator[Event, None]: ...
