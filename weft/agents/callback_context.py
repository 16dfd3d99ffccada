"""Mutable context handed to callbacks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ServiceNotConfiguredError
from ..events.event_actions import EventActions
from ..sessions.state import State
from .readonly_context import ReadonlyContext

if TYPE_CHECKING:
    from ..types import Part
    from .invocation_context import InvocationContext


class CallbackContext(ReadonlyContext):
    """Adds delta-tracked state writes and artifact access.

    State writes land in ``actions.state_delta``; whoever owns this context
    attaches those actions to the event it emits.
    """

    def __init__(
        self,
        invocation_context: InvocationContext,
        event_actions: EventActions | None = None,
    ) -> None:
        super().__init__(invocation_context)
        self._event_actions = event_actions or EventActions()
        self._state = State(
            value=invocation_context.session.state,
            delta=self._event_actions.state_delta,
        )

    @property
    def state(self) -> State:  # type: ignore[override]
        return self._state

    @property
    def actions(self) -> EventActions:
        return self._event_actions

    async def load_artifact(self, filename: str, version: int | None = None) -> Part | None:
        ctx = self._invocation_context
        if ctx.artifact_service is None:
            raise ServiceNotConfiguredError("Artifact service")
        return await ctx.artifact_service.load_artifact(
            app_name=ctx.app_name,
            user_id=ctx.user_id,
            session_id=ctx.session.id,
            filename=filename,
            version=version,
        )

    async def save_artifact(self, filename: str, artifact: Part) -> int:
        ctx = self._invocation_context
        if ctx.artifact_service is None:
            raise ServiceNotConfiguredError("Artifact service")
        version = await ctx.artifact_service.save_artifact(
            app_name=ctx.app_name,
            user_id=ctx.user_id,
            session_id=ctx.session.id,
            filename=filename,
            artifact=artifact,
        )
        self._event_actions.artifact_delta[filename] = version
        return version
