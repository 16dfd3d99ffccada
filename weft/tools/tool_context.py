"""Context handed to a running tool."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..agents.callback_context import CallbackContext
from ..auth.auth_config import AuthConfig
from ..errors import ServiceNotConfiguredError
from ..sessions.state import State

if TYPE_CHECKING:
    from ..agents.invocation_context import InvocationContext
    from ..events.event_actions import EventActions
    from ..memory import SearchMemoryResponse


class ToolContext(CallbackContext):
    def __init__(
        self,
        invocation_context: InvocationContext,
        function_call_id: str | None = None,
        event_actions: EventActions | None = None,
    ) -> None:
        super().__init__(invocation_context, event_actions=event_actions)
        self.function_call_id = function_call_id

    def request_credential(self, auth_config: AuthConfig) -> None:
        if not self.function_call_id:
            raise ValueError("function_call_id is not set.")
        self.actions.requested_auth_configs[self.function_call_id] = auth_config

    def get_auth_response(self, auth_config: AuthConfig) -> dict[str, Any] | None:
        key = State.TEMP_PREFIX + auth_config.get_credential_key()
        return self.invocation_context.session.state.get(key)

    async def list_artifacts(self) -> list[str]:
        ctx = self.invocation_context
        if ctx.artifact_service is None:
            raise ServiceNotConfiguredError("Artifact service")
        return await ctx.artifact_service.list_artifact_keys(
            app_name=ctx.app_name, user_id=ctx.user_id, session_id=ctx.session.id
        )

    async def search_memory(self, query: str) -> SearchMemoryResponse:
        ctx = self.invocation_context
        if ctx.memory_service is None:
            raise ServiceNotConfiguredError("Memory service")
        return await ctx.memory_service.search_memory(
            app_name=ctx.app_name, user_id=ctx.user_id, query=query
        )
