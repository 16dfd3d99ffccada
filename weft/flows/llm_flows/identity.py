"""Tell the model who it is."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base_processor import BaseLlmRequestMutator

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest


class IdentityLlmRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        agent = ctx.agent
        instructions = [f'You are an agent. Your internal name is "{agent.name}".']
        if agent.description:
            instructions.append(f' The description about you is "{agent.description}"')
        llm_request.append_instructions(instructions)


request_processor = IdentityLlmRequestProcessor()
