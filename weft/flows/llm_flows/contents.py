"""Conversation-history assembly for the outgoing request."""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING

from ...agents.capabilities import HasContentsPolicy
from ...auth.auth_config import REQUEST_CREDENTIAL_FUNCTION_CALL_NAME
from ...events import Event
from ...types import Content, Part
from .base_processor import BaseLlmRequestMutator
from .functions import remove_client_function_call_id

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest


class ContentLlmRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        agent = ctx.agent
        if not isinstance(agent, HasContentsPolicy):
            return
        if agent.include_contents == "default":
            llm_request.contents = get_contents(ctx.branch, ctx.session.events, agent.name)
        else:
            llm_request.contents = get_current_turn_contents(ctx.branch, ctx.session.events, agent.name)


request_processor = ContentLlmRequestProcessor()


def get_contents(current_branch: str | None, events: list[Event], agent_name: str = "") -> list[Content]:
    """Build the model-visible history for ``agent_name`` on ``current_branch``."""
    filtered: list[Event] = []
    for event in _apply_rewind(events):
        if not _is_event_belongs_to_branch(current_branch, event):
            continue
        if event.actions.compaction is not None:
            filtered.append(event)
            continue
        if not _has_model_visible_content(event) or _is_auth_event(event):
            continue
        filtered.append(_convert_foreign_event(event) if _is_other_agent_reply(agent_name, event) else event)

    result = _process_compaction_events(filtered)
    result = _rearrange_events_for_latest_function_response(result)
    result = _rearrange_events_for_async_function_responses_in_history(result)

    contents = []
    for event in result:
        content = copy.deepcopy(event.content)
        remove_client_function_call_id(content)
        contents.append(content)
    return contents


def get_current_turn_contents(
    current_branch: str | None, events: list[Event], agent_name: str = ""
) -> list[Content]:
    """History starting at the latest user input or other agent's reply."""
    for i in range(len(events) - 1, -1, -1):
        event = events[i]
        if event.author == "user" or _is_other_agent_reply(agent_name, event):
            return get_contents(current_branch, events[i:], agent_name)
    return []


def _apply_rewind(events: list[Event]) -> list[Event]:
    """Drop everything from a rewound invocation onwards, and the marker itself."""
    first_index: dict[str, int] = {}
    for idx, event in enumerate(events):
        if event.invocation_id and event.invocation_id not in first_index:
            first_index[event.invocation_id] = idx

    kept: list[Event] = []
    i = len(events) - 1
    while i >= 0:
        event = events[i]
        target = event.actions.rewind_before_invocation_id
        if target:
            rewind_index = first_index.get(target)
            if rewind_index is not None and rewind_index < i:
                i = rewind_index
        else:
            kept.append(event)
        i -= 1
    kept.reverse()
    return kept


def _has_model_visible_content(event: Event) -> bool:
    if not event.content or not event.content.role or not event.content.parts:
        return False
    return any(
        p.text or p.function_call or p.function_response or p.inline_data
        or p.executable_code or p.code_execution_result
        for p in event.content.parts
    )


def _is_event_belongs_to_branch(invocation_branch: str | None, event: Event) -> bool:
    if not invocation_branch or not event.branch:
        return True
    return invocation_branch == event.branch or invocation_branch.startswith(f"{event.branch}.")


def _is_auth_event(event: Event) -> bool:
    for part in event.content.parts:
        if part.function_call and part.function_call.name == REQUEST_CREDENTIAL_FUNCTION_CALL_NAME:
            return True
        if part.function_response and part.function_response.name == REQUEST_CREDENTIAL_FUNCTION_CALL_NAME:
            return True
    return False


def _is_other_agent_reply(current_agent_name: str, event: Event) -> bool:
    return bool(current_agent_name) and event.author not in (current_agent_name, "user")


def _convert_foreign_event(event: Event) -> Event:
    """Present another agent's output as background user context."""
    parts = [Part(text="For context:")]
    for part in event.content.parts:
        if part.thought:
            continue
        if part.text:
            parts.append(Part(text=f"[{event.author}] said: {part.text}"))
        elif part.function_call:
            parts.append(
                Part(
                    text=f"[{event.author}] called tool `{part.function_call.name}` with "
                    f"parameters: {json.dumps(part.function_call.args, default=str)}"
                )
            )
        elif part.function_response:
            parts.append(
                Part(
                    text=f"[{event.author}] `{part.function_response.name}` tool returned "
                    f"result: {json.dumps(part.function_response.response, default=str)}"
                )
            )
        else:
            parts.append(part)
    return Event(
        invocation_id=event.invocation_id,
        timestamp=event.timestamp,
        author="user",
        branch=event.branch,
        content=Content(role="user", parts=parts),
    )


def _process_compaction_events(events: list[Event]) -> list[Event]:
    """Replace each summarised window with its summary turn."""
    result: list[Event] = []
    earliest_compacted = float("inf")
    for event in reversed(events):
        compaction = event.actions.compaction
        if compaction is not None:
            result.append(
                Event(
                    invocation_id=event.invocation_id,
                    timestamp=compaction.end_timestamp,
                    author="model",
                    branch=event.branch,
                    content=compaction.compacted_content,
                )
            )
            earliest_compacted = min(earliest_compacted, compaction.start_timestamp)
        elif event.timestamp < earliest_compacted:
            result.append(event)
    result.reverse()
    return result


def _rearrange_events_for_latest_function_response(events: list[Event]) -> list[Event]:
    """Make the latest function response sit right after its call."""
    if not events:
        return events
    responses = events[-1].get_function_responses()
    if not responses:
        return events

    response_ids = {r.id for r in responses if r.id}
    if len(events) >= 2:
        if any(fc.id in response_ids for fc in events[-2].get_function_calls()):
            return events

    call_event_idx = -1
    for idx in range(len(events) - 2, -1, -1):
        calls = events[idx].get_function_calls()
        if any(fc.id in response_ids for fc in calls):
            call_event_idx = idx
            response_ids.update(fc.id for fc in calls if fc.id)
            break
    if call_event_idx == -1:
        return events

    response_events = [
        e
        for e in events[call_event_idx + 1 : -1]
        if any(r.id in response_ids for r in e.get_function_responses())
    ]
    response_events.append(events[-1])
    return events[: call_event_idx + 1] + [_merge_function_response_events(response_events)]


def _rearrange_events_for_async_function_responses_in_history(events: list[Event]) -> list[Event]:
    """Place every response (merged if split) right after its call."""
    response_index: dict[str, int] = {}
    for idx, event in enumerate(events):
        for response in event.get_function_responses():
            if response.id:
                response_index[response.id] = idx

    result: list[Event] = []
    for event in events:
        if event.get_function_responses():
            continue
        calls = event.get_function_calls()
        result.append(event)
        if not calls:
            continue
        indices = sorted({response_index[fc.id] for fc in calls if fc.id in response_index})
        if len(indices) == 1:
            result.append(events[indices[0]])
        elif indices:
            result.append(_merge_function_response_events([events[i] for i in indices]))
    return result


def _merge_function_response_events(events: list[Event]) -> Event:
    if not events:
        raise ValueError("At least one function_response event is required.")
    merged = copy.deepcopy(events[0])
    parts = merged.content.parts
    positions = {p.function_response.id: i for i, p in enumerate(parts) if p.function_response and p.function_response.id}
    for event in events[1:]:
        for part in event.content.parts:
            response_id = part.function_response.id if part.function_response else None
            if response_id and response_id in positions:
                parts[positions[response_id]] = copy.deepcopy(part)
            else:
                parts.append(copy.deepcopy(part))
                if response_id:
                    positions[response_id] = len(parts) - 1
    return merged
