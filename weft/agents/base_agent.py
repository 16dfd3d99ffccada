"""Agent base class: identity, tree links and the templated run."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, AsyncGenerator

from ..errors import AgentConfigError, AgentNotImplementedError
from ..events import Event
from ..types import Content
from ..utils.callbacks import CallbackOrList, canonical_callbacks, first_result
from .callback_context import CallbackContext

if TYPE_CHECKING:
    from .invocation_context import InvocationContext

logger = logging.getLogger(__name__)


def _has_content(result: object) -> bool:
    return isinstance(result, Content) and bool(result.parts)


def validate_agent_name(name: str) -> None:
    if not name.isidentifier():
        raise AgentConfigError(
            f"Found invalid agent name: `{name}`. Agent name must be a valid identifier. "
            "It should start with a letter (a-z, A-Z) or an underscore (_), and can only "
            "contain letters, digits (0-9), and underscores."
        )
    if name == "user":
        raise AgentConfigError(
            "Agent name cannot be `user`. `user` is reserved for end-user's input."
        )


class BaseAgent:
    """Unit of work in the agent tree.

    ``run_async`` and ``run_live`` wrap the subclass streams with the before
    and after agent callbacks. Each callback may be a single callable or an
    ordered list; the first to return non-empty content wins.
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        sub_agents: list[BaseAgent] | None = None,
        before_agent_callback: CallbackOrList = None,
        after_agent_callback: CallbackOrList = None,
    ) -> None:
        validate_agent_name(name)
        self.name = name
        self.description = description
        self.parent_agent: BaseAgent | None = None
        self.sub_agents: list[BaseAgent] = []
        self.before_agent_callback = before_agent_callback
        self.after_agent_callback = after_agent_callback
        for sub_agent in sub_agents or []:
            self.add_sub_agent(sub_agent)

    def add_sub_agent(self, sub_agent: BaseAgent) -> None:
        if sub_agent.parent_agent is not None:
            raise AgentConfigError(
                f"Agent `{sub_agent.name}` already has a parent agent, current parent: "
                f"`{sub_agent.parent_agent.name}`, trying to add: `{self.name}`"
            )
        sub_agent.parent_agent = self
        self.sub_agents.append(sub_agent)

    @property
    def root_agent(self) -> BaseAgent:
        agent = self
        while agent.parent_agent is not None:
            agent = agent.parent_agent
        return agent

    def find_agent(self, name: str) -> BaseAgent | None:
        if self.name == name:
            return self
        return self.find_sub_agent(name)

    def find_sub_agent(self, name: str) -> BaseAgent | None:
        for sub_agent in self.sub_agents:
            found = sub_agent.find_agent(name)
            if found is not None:
                return found
        return None

    @property
    def canonical_before_agent_callbacks(self):
        return canonical_callbacks(self.before_agent_callback)

    @property
    def canonical_after_agent_callbacks(self):
        return canonical_callbacks(self.after_agent_callback)

    # ---- run templates ----

    async def run_async(self, parent_context: InvocationContext) -> AsyncGenerator[Event, None]:
        ctx = self._create_invocation_context(parent_context)
        logger.debug("agent_run [%s] branch=%s", self.name, ctx.branch)

        event = await self._handle_before_agent_callback(ctx)
        if event is not None:
            yield event
        if ctx.end_invocation:
            return

        async for event in self._run_async_impl(ctx):
            yield event

        if ctx.end_invocation:
            return

        event = await self._handle_after_agent_callback(ctx)
        if event is not None:
            yield event

    async def run_live(self, parent_context: InvocationContext) -> AsyncGenerator[Event, None]:
        ctx = self._create_invocation_context(parent_context)
        logger.debug("agent_run_live [%s] branch=%s", self.name, ctx.branch)

        event = await self._handle_before_agent_callback(ctx)
        if event is not None:
            yield event
        if ctx.end_invocation:
            return

        async for event in self._run_live_impl(ctx):
            yield event

        event = await self._handle_after_agent_callback(ctx)
        if event is not None:
            yield event

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        raise AgentNotImplementedError(
            f"_run_async_impl for {type(self).__name__} is not implemented."
        )
        yield  # pragma: no cover

    async def _run_live_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        raise AgentNotImplementedError(
            f"_run_live_impl for {type(self).__name__} is not implemented."
        )
        yield  # pragma: no cover

    def _create_invocation_context(self, parent_context: InvocationContext) -> InvocationContext:
        return dataclasses.replace(parent_context, agent=self)

    # ---- callbacks ----

    async def _handle_before_agent_callback(self, ctx: InvocationContext) -> Event | None:
        callbacks = self.canonical_before_agent_callbacks
        if not callbacks:
            return None
        callback_context = CallbackContext(ctx)
        content = await first_result(callbacks, callback_context, accept=_has_content)
        if content is not None:
            ctx.end_invocation = True
            return self._callback_event(ctx, callback_context, content)
        if callback_context.state.has_delta():
            return self._callback_event(ctx, callback_context, None)
        return None

    async def _handle_after_agent_callback(self, ctx: InvocationContext) -> Event | None:
        callbacks = self.canonical_after_agent_callbacks
        if not callbacks:
            return None
        callback_context = CallbackContext(ctx)
        content = await first_result(callbacks, callback_context, accept=_has_content)
        if content is not None or callback_context.state.has_delta():
            return self._callback_event(ctx, callback_context, content)
        return None

    def _callback_event(
        self, ctx: InvocationContext, callback_context: CallbackContext, content: Content | None
    ) -> Event:
        return Event(
            invocation_id=ctx.invocation_id,
            author=self.name,
            branch=ctx.branch,
            content=content,
            actions=callback_context.actions,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
