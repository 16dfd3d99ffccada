"""Repeat sub-agents until escalation or an iteration cap."""

from __future__ import annotations

from typing import AsyncGenerator

from ..errors import AgentNotImplementedError
from ..events import Event
from ..utils.callbacks import CallbackOrList
from .base_agent import BaseAgent
from .invocation_context import InvocationContext


class LoopAgent(BaseAgent):
    """Runs its sub-agents in a loop.

    Stops as soon as any sub-agent event escalates, or after
    ``max_iterations`` passes when set.
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        sub_agents: list[BaseAgent] | None = None,
        max_iterations: int | None = None,
        before_agent_callback: CallbackOrList = None,
        after_agent_callback: CallbackOrList = None,
    ) -> None:
        super().__init__(
            name,
            description=description,
            sub_agents=sub_agents,
            before_agent_callback=before_agent_callback,
            after_agent_callback=after_agent_callback,
        )
        self.max_iterations = max_iterations

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        times_looped = 0
        while self.max_iterations is None or times_looped < self.max_iterations:
            for sub_agent in self.sub_agents:
                async for event in sub_agent.run_async(ctx):
                    yield event
                    if event.actions.escalate:
                        return
            times_looped += 1

    async def _run_live_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        raise AgentNotImplementedError("This is not supported yet for LoopAgent.")
        yield  # pragma: no cover
