"""Tool-call execution and function-response bookkeeping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ...agents.capabilities import HasTools
from ...auth.auth_config import REQUEST_CREDENTIAL_FUNCTION_CALL_NAME, AuthToolArguments
from ...errors import ToolError, ToolNotFoundError, WeftError
from ...events import Event, EventActions
from ...tools.tool_context import ToolContext
from ...types import Content, FunctionCall, Part
from ...utils.callbacks import first_result
from ...utils.ids import CLIENT_FUNCTION_CALL_ID_PREFIX, new_function_call_id

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...tools.base_tool import BaseTool

logger = logging.getLogger(__name__)


def populate_client_function_call_id(event: Event) -> None:
    for function_call in event.get_function_calls():
        if not function_call.id:
            function_call.id = new_function_call_id()


def remove_client_function_call_id(content: Content | None) -> None:
    """Strip ids minted locally so the backend never sees them."""
    if not content:
        return
    for part in content.parts:
        if part.function_call and part.function_call.id and part.function_call.id.startswith(
            CLIENT_FUNCTION_CALL_ID_PREFIX
        ):
            part.function_call.id = None
        if (
            part.function_response
            and part.function_response.id
            and part.function_response.id.startswith(CLIENT_FUNCTION_CALL_ID_PREFIX)
        ):
            part.function_response.id = None


def get_long_running_function_calls(
    function_calls: list[FunctionCall], tools_dict: dict[str, BaseTool]
) -> set[str]:
    return {
        fc.id
        for fc in function_calls
        if fc.id and fc.name in tools_dict and tools_dict[fc.name].is_long_running
    }


def generate_auth_event(ctx: InvocationContext, function_response_event: Event) -> Event | None:
    """Turn tools' credential requests into long-running pseudo tool calls."""
    requested = function_response_event.actions.requested_auth_configs
    if not requested:
        return None
    parts = []
    long_running_ids: set[str] = set()
    for function_call_id, auth_config in requested.items():
        call = FunctionCall(
            name=REQUEST_CREDENTIAL_FUNCTION_CALL_NAME,
            args=AuthToolArguments(
                function_call_id=function_call_id, auth_config=auth_config
            ).model_dump(exclude_none=True),
            id=new_function_call_id(),
        )
        long_running_ids.add(call.id)
        parts.append(Part(function_call=call))
    return Event(
        invocation_id=ctx.invocation_id,
        author=ctx.agent.name,
        branch=ctx.branch,
        content=Content(role="model", parts=parts),
        long_running_tool_ids=long_running_ids,
    )


async def handle_function_calls_async(
    ctx: InvocationContext,
    function_call_event: Event,
    tools_dict: dict[str, BaseTool],
    filters: set[str] | None = None,
) -> Event | None:
    """Run the tools requested by ``function_call_event``.

    ``filters`` restricts execution to the given call ids, used when resuming
    calls that were blocked on a credential. Returns one merged response
    event, or ``None`` if every executed tool is still pending.
    """
    agent = ctx.agent
    before_callbacks = agent.canonical_before_tool_callbacks if isinstance(agent, HasTools) else []
    after_callbacks = agent.canonical_after_tool_callbacks if isinstance(agent, HasTools) else []

    response_events: list[Event] = []
    for function_call in function_call_event.get_function_calls():
        if filters is not None and function_call.id not in filters:
            continue
        tool = tools_dict.get(function_call.name)
        if tool is None:
            raise ToolNotFoundError(function_call.name)
        tool_context = ToolContext(ctx, function_call_id=function_call.id)
        args = dict(function_call.args or {})

        result = await first_result(before_callbacks, tool, args, tool_context)
        if result is None:
            logger.debug("Executing tool %s (%s)", tool.name, function_call.id)
            result = await _call_tool(tool, args, tool_context)

        altered = await first_result(after_callbacks, tool, args, tool_context, result)
        if altered is not None:
            result = altered

        if tool.is_long_running and result is None:
            continue

        response_events.append(_build_response_event(ctx, tool, result, tool_context))

    if not response_events:
        return None
    return merge_parallel_function_response_events(response_events)


async def _call_tool(tool: BaseTool, args: dict[str, Any], tool_context: ToolContext) -> Any:
    try:
        return await tool.run_async(args=args, tool_context=tool_context)
    except WeftError:
        raise
    except Exception as e:
        raise ToolError("TOOL_EXECUTION_FAILED", tool.name, f"Tool {tool.name} failed: {e}", e) from e


def _build_response_event(
    ctx: InvocationContext, tool: BaseTool, result: Any, tool_context: ToolContext
) -> Event:
    if not isinstance(result, dict):
        result = {"result": result}
    part = Part.from_function_response(name=tool.name, response=result, id=tool_context.function_call_id)
    return Event(
        invocation_id=ctx.invocation_id,
        author=ctx.agent.name,
        branch=ctx.branch,
        content=Content(role="user", parts=[part]),
        actions=tool_context.actions,
    )


def merge_parallel_function_response_events(events: list[Event]) -> Event:
    """Fold same-step tool responses into one event, parts in call order."""
    if not events:
        raise ValueError("No function response events provided.")
    if len(events) == 1:
        return events[0]

    parts: list[Part] = []
    actions = EventActions()
    for event in events:
        if event.content:
            parts.extend(event.content.parts)
        actions.merge(event.actions)

    base = events[0]
    return Event(
        invocation_id=base.invocation_id,
        author=base.author,
        branch=base.branch,
        content=Content(role="user", parts=parts),
        actions=actions,
        timestamp=base.timestamp,
    )
