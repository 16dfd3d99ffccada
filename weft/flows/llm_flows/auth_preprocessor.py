"""Resume tool calls that were blocked on a credential the client just supplied."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, AsyncGenerator

from ...agents.capabilities import HasTools
from ...agents.readonly_context import ReadonlyContext
from ...auth.auth_config import REQUEST_CREDENTIAL_FUNCTION_CALL_NAME, AuthConfig, AuthToolArguments
from ...sessions.state import State
from . import functions
from .base_processor import BaseLlmRequestProcessor

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...events import Event
    from ...models.llm_request import LlmRequest

logger = logging.getLogger(__name__)


class AuthLlmRequestProcessor(BaseLlmRequestProcessor):
    async def run_async(
        self, ctx: InvocationContext, llm_request: LlmRequest
    ) -> AsyncGenerator[Event, None]:
        agent = ctx.agent
        if not isinstance(agent, HasTools):
            return
        events = ctx.session.events
        if not events:
            return

        credential_call_ids = self._store_credential_responses(ctx, events)
        if not credential_call_ids:
            return

        for i in range(len(events) - 2, -1, -1):
            tools_to_resume: set[str] = set()
            for call in events[i].get_function_calls():
                if call.id in credential_call_ids:
                    args = AuthToolArguments.model_validate(call.args)
                    tools_to_resume.add(args.function_call_id)
            if not tools_to_resume:
                continue
            tools_to_resume -= _resumed_since_last_user_event(events)
            if not tools_to_resume:
                return

            for j in range(i - 1, -1, -1):
                original = events[j]
                if not any(c.id in tools_to_resume for c in original.get_function_calls()):
                    continue
                tools = {t.name: t for t in await agent.canonical_tools(ReadonlyContext(ctx))}
                logger.debug("Resuming tool calls %s after credential response", sorted(tools_to_resume))
                response_event = await functions.handle_function_calls_async(
                    ctx, original, tools, tools_to_resume
                )
                if response_event is not None:
                    yield response_event
                return
            return

    @staticmethod
    def _store_credential_responses(ctx: InvocationContext, events: list[Event]) -> set[str]:
        """Read credential answers from the latest user event into ``temp:`` state."""
        last_user_event = next((e for e in reversed(events) if e.author == "user"), None)
        if last_user_event is None:
            return set()
        ids: set[str] = set()
        for response in last_user_event.get_function_responses():
            if response.name != REQUEST_CREDENTIAL_FUNCTION_CALL_NAME:
                continue
            ids.add(response.id)
            auth_config = AuthConfig.model_validate(response.response)
            # invocation-scoped: temp keys are never committed
            ctx.session.state[State.TEMP_PREFIX + auth_config.get_credential_key()] = (
                auth_config.exchanged_auth_credential
            )
        return ids


def _resumed_since_last_user_event(events: list[Event]) -> set[str]:
    """Call ids already answered after the credential response arrived."""
    for idx in range(len(events) - 1, -1, -1):
        if events[idx].author == "user":
            return {r.id for e in events[idx + 1 :] for r in e.get_function_responses() if r.id}
    return set()


request_processor = AuthLlmRequestProcessor()
