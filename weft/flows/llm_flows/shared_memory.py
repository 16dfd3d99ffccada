"""Inject relevant long-term memories into the request."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...types import Content, Part
from .base_processor import BaseLlmRequestMutator

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest

logger = logging.getLogger(__name__)


class SharedMemoryRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        if ctx.memory_service is None:
            return
        last_user_event = next(
            (e for e in reversed(ctx.session.events) if e.author == "user" and e.content),
            None,
        )
        if last_user_event is None:
            return
        query = last_user_event.content.text
        if not query:
            return

        response = await ctx.memory_service.search_memory(
            app_name=ctx.app_name, user_id=ctx.user_id, query=query
        )
        session_texts = {
            e.content.text for e in ctx.session.events if e.content and e.content.text
        }
        added = 0
        for memory in response.memories:
            text = memory.content.text
            if not text or text in session_texts:
                continue
            llm_request.contents.append(
                Content(role="user", parts=[Part(text=f"[{memory.author}] said: {text}")])
            )
            added += 1
        if added:
            logger.debug("Injected %d memories for agent %s", added, ctx.agent.name)


request_processor = SharedMemoryRequestProcessor()
