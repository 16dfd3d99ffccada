"""Planning instruction injection and planning-response post-processing."""

from __future__ import annotations

from typing import TYPE_CHECKING, AsyncGenerator

from ...agents.callback_context import CallbackContext
from ...agents.capabilities import HasPlanner
from ...agents.readonly_context import ReadonlyContext
from ...events import Event
from ...planners.base_planner import BasePlanner
from ...planners.built_in_planner import BuiltInPlanner
from .base_processor import BaseLlmRequestMutator, BaseLlmResponseProcessor

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest
    from ...models.llm_response import LlmResponse


def _get_planner(ctx: InvocationContext) -> BasePlanner | None:
    agent = ctx.agent
    if not isinstance(agent, HasPlanner) or agent.planner is None:
        return None
    return agent.planner


class NlPlanningRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        planner = _get_planner(ctx)
        if planner is None:
            return
        if isinstance(planner, BuiltInPlanner):
            planner.apply_thinking_config(llm_request)

        instruction = planner.build_planning_instruction(ReadonlyContext(ctx), llm_request)
        if instruction:
            llm_request.append_instructions([instruction])

        for content in llm_request.contents:
            for part in content.parts:
                part.thought = False


class NlPlanningResponseProcessor(BaseLlmResponseProcessor):
    async def run_async(
        self, ctx: InvocationContext, llm_response: LlmResponse
    ) -> AsyncGenerator[Event, None]:
        if not llm_response.content or not llm_response.content.parts or llm_response.partial:
            return
        planner = _get_planner(ctx)
        if planner is None or isinstance(planner, BuiltInPlanner):
            return

        callback_context = CallbackContext(ctx)
        processed = planner.process_planning_response(callback_context, llm_response.content.parts)
        if processed:
            llm_response.content.parts = processed

        if callback_context.state.has_delta():
            yield Event(
                invocation_id=ctx.invocation_id,
                author=ctx.agent.name,
                branch=ctx.branch,
                actions=callback_context.actions,
            )


request_processor = NlPlanningRequestProcessor()
response_processor = NlPlanningResponseProcessor()
