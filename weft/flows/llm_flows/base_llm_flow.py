"""Step loop: build request, call model, handle tools, maybe transfer."""

from __future__ import annotations

import copy
import dataclasses
import logging
from typing import TYPE_CHECKING, AsyncGenerator

from ...agents.callback_context import CallbackContext
from ...agents.capabilities import HasModel, HasTools
from ...agents.readonly_context import ReadonlyContext
from ...agents.run_config import StreamingMode
from ...errors import AgentNotFoundError, InvariantViolationError, ServiceNotConfiguredError
from ...events import Event
from ...models.llm_request import LlmRequest
from ...models.llm_response import RESPONSE_FIELDS, LlmResponse
from ...tools.tool_context import ToolContext
from ...types import Content, Part
from ...utils.callbacks import first_result
from . import functions
from .base_processor import BaseLlmRequestProcessor, BaseLlmResponseProcessor

if TYPE_CHECKING:
    from ...agents.base_agent import BaseAgent
    from ...agents.invocation_context import InvocationContext
    from ...models.base_llm import BaseLlm

logger = logging.getLogger(__name__)

AGENT_NAME_LABEL = "weft_agent_name"


class BaseLlmFlow:
    """Drives an agent's turn one model call at a time.

    Each step runs the request processors, calls the model, runs the
    response processors, executes requested tools and follows a transfer.
    The loop ends once a step's last event is a final response.
    """

    def __init__(self) -> None:
        self.request_processors: list[BaseLlmRequestProcessor] = []
        self.response_processors: list[BaseLlmResponseProcessor] = []

    async def run_async(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        while True:
            last_event: Event | None = None
            async for event in self._run_one_step_async(ctx):
                last_event = event
                yield event
            if last_event is None or last_event.is_final_response():
                break
            if last_event.partial:
                raise InvariantViolationError(
                    "Last event shouldn't be partial. LLM max output limit may be reached."
                )

    async def run_live(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        """Serve turns from the live request queue until it is closed.

        Every queued input becomes a user event; the consumer commits it
        before this generator resumes, so the following step sees it.
        """
        queue = ctx.live_request_queue
        if queue is None:
            raise ServiceNotConfiguredError("Live request queue")
        while True:
            request = await queue.get()
            if request.close:
                logger.debug("Live queue closed for %s", ctx.agent.name)
                return
            if request.content is not None:
                content = request.content
            elif request.blob is not None:
                content = Content(role="user", parts=[Part(inline_data=request.blob)])
            else:
                continue
            ctx.user_content = content
            ctx.end_invocation = False
            yield Event(
                invocation_id=ctx.invocation_id,
                author="user",
                branch=ctx.branch,
                content=content,
            )
            async for event in self.run_async(ctx):
                yield event

    # ---- one step ----

    async def _run_one_step_async(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        llm_request = LlmRequest()

        async for event in self._preprocess_async(ctx, llm_request):
            yield event
        if ctx.end_invocation:
            return

        model_response_event = Event(
            id=Event.new_id(),
            invocation_id=ctx.invocation_id,
            author=ctx.agent.name,
            branch=ctx.branch,
        )
        async for llm_response in self._call_llm_async(ctx, llm_request, model_response_event):
            async for event in self._postprocess_async(ctx, llm_request, llm_response, model_response_event):
                model_response_event.id = Event.new_id()
                yield event

    async def _preprocess_async(
        self, ctx: InvocationContext, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]:
        for processor in self.request_processors:
            async for event in processor.run_async(ctx, llm_request):
                yield event

        agent = ctx.agent
        if not isinstance(agent, HasTools):
            return
        seen: set[str] = set()
        for tool in await agent.canonical_tools(ReadonlyContext(ctx)):
            if tool.name in seen:
                logger.debug("Skipping duplicate tool %s for agent %s", tool.name, agent.name)
                continue
            seen.add(tool.name)
            await tool.process_llm_request(tool_context=ToolContext(ctx), llm_request=llm_request)

    async def _postprocess_async(
        self,
        ctx: InvocationContext,
        llm_request: LlmRequest,
        llm_response: LlmResponse,
        model_response_event: Event,
    ) -> AsyncGenerator[Event, None]:
        for processor in self.response_processors:
            async for event in processor.run_async(ctx, llm_response):
                yield event

        if not llm_response.content and not llm_response.error_code and not llm_response.interrupted:
            return

        event = self._finalize_model_response_event(llm_request, llm_response, model_response_event)
        yield event

        if event.get_function_calls() and not event.partial:
            async for follow_up in self._postprocess_handle_function_calls_async(ctx, event, llm_request):
                yield follow_up

    async def _postprocess_handle_function_calls_async(
        self, ctx: InvocationContext, function_call_event: Event, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]:
        response_event = await functions.handle_function_calls_async(
            ctx, function_call_event, llm_request.tools_dict
        )
        if response_event is None:
            return

        auth_event = functions.generate_auth_event(ctx, response_event)
        if auth_event is not None:
            yield auth_event
        yield response_event

        transfer_to = response_event.actions.transfer_to_agent
        if transfer_to:
            agent_to_run = self._get_agent_to_run(ctx, transfer_to)
            logger.debug("Transferring from %s to %s", ctx.agent.name, transfer_to)
            async for event in agent_to_run.run_async(ctx):
                yield event

    def _get_agent_to_run(self, ctx: InvocationContext, agent_name: str) -> BaseAgent:
        agent = ctx.agent.root_agent.find_agent(agent_name)
        if agent is None:
            raise AgentNotFoundError(agent_name)
        return agent

    # ---- model call ----

    async def _call_llm_async(
        self, ctx: InvocationContext, llm_request: LlmRequest, model_response_event: Event
    ) -> AsyncGenerator[LlmResponse, None]:
        agent = ctx.agent
        override = await self._handle_before_model_callback(ctx, llm_request, model_response_event)
        if override is not None:
            yield override
            return

        llm_request.config.labels.setdefault(AGENT_NAME_LABEL, agent.name)
        llm = self._get_llm(ctx)
        ctx.increment_llm_call_count()
        llm_request.dedupe_declarations()

        stream = ctx.run_config.streaming_mode == StreamingMode.SSE
        logger.debug("Calling model %s for agent %s (stream=%s)", llm.model, agent.name, stream)
        async for llm_response in llm.generate_content_async(llm_request, stream=stream):
            altered = await self._handle_after_model_callback(ctx, llm_response, model_response_event)
            yield altered if altered is not None else llm_response

    async def _handle_before_model_callback(
        self, ctx: InvocationContext, llm_request: LlmRequest, model_response_event: Event
    ) -> LlmResponse | None:
        agent = ctx.agent
        if not isinstance(agent, HasModel):
            return None
        callbacks = agent.canonical_before_model_callbacks
        if not callbacks:
            return None
        callback_context = CallbackContext(ctx, event_actions=model_response_event.actions)
        return await first_result(callbacks, callback_context, llm_request)

    async def _handle_after_model_callback(
        self, ctx: InvocationContext, llm_response: LlmResponse, model_response_event: Event
    ) -> LlmResponse | None:
        agent = ctx.agent
        if not isinstance(agent, HasModel):
            return None
        callbacks = agent.canonical_after_model_callbacks
        if not callbacks:
            return None
        callback_context = CallbackContext(ctx, event_actions=model_response_event.actions)
        return await first_result(callbacks, callback_context, llm_response)

    def _finalize_model_response_event(
        self, llm_request: LlmRequest, llm_response: LlmResponse, model_response_event: Event
    ) -> Event:
        updates = {
            name: getattr(llm_response, name)
            for name in RESPONSE_FIELDS
            if getattr(llm_response, name) is not None
        }
        event = dataclasses.replace(
            model_response_event, actions=copy.deepcopy(model_response_event.actions), **updates
        )
        if event.content:
            function_calls = event.get_function_calls()
            if function_calls:
                functions.populate_client_function_call_id(event)
                event.long_running_tool_ids = functions.get_long_running_function_calls(
                    function_calls, llm_request.tools_dict
                ) or None
        return event

    def _get_llm(self, ctx: InvocationContext) -> BaseLlm:
        agent = ctx.agent
        if not isinstance(agent, HasModel):
            raise TypeError(f"Agent {agent.name} is not model-backed.")
        return agent.canonical_model
