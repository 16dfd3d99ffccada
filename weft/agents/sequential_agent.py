"""Run sub-agents one after another."""

from __future__ import annotations

from typing import AsyncGenerator

from ..events import Event
from .base_agent import BaseAgent
from .invocation_context import InvocationContext


class SequentialAgent(BaseAgent):
    """Runs its sub-agents in order on the same context."""

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        for sub_agent in self.sub_agents:
            async for event in sub_agent.run_async(ctx):
                yield event

    async def _run_live_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        for sub_agent in self.sub_agents:
            async for event in sub_agent.run_live(ctx):
                yield event
