"""Fan-out to sub-agents on isolated branches, fan-in their events."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncGenerator, AsyncIterator, Sequence

from ..errors import AgentNotImplementedError, FatalAgentError
from ..events import Event
from .base_agent import BaseAgent
from .invocation_context import InvocationContext

logger = logging.getLogger(__name__)


@dataclass
class _Stream:
    key: int
    source: AsyncIterator[Event]
    pending: asyncio.Task[Event] | None = None


async def _pull(source: AsyncIterator[Event]) -> Event:
    return await anext(source)


async def merge_agent_run(streams: Sequence[AsyncIterator[Event]]) -> AsyncGenerator[Event, None]:
    """Interleave events from several streams in arrival order.

    A stream is only advanced again after its last event has been consumed
    downstream. Streams are tracked by a key fixed at start, so retiring one
    never disturbs the bookkeeping of the others. A stream that raises is
    logged and retired; fatal agent errors cancel the rest and propagate.
    """
    arena: dict[int, _Stream] = {key: _Stream(key, source) for key, source in enumerate(streams)}
    owner: dict[asyncio.Task[Event], int] = {}

    def advance(stream: _Stream) -> None:
        stream.pending = asyncio.create_task(_pull(stream.source))
        owner[stream.pending] = stream.key

    for stream in arena.values():
        advance(stream)

    try:
        while arena:
            done, _ = await asyncio.wait(owner.keys(), return_when=asyncio.FIRST_COMPLETED)
            for task in sorted(done, key=lambda t: owner[t]):
                key = owner.pop(task)
                stream = arena[key]
                stream.pending = None
                try:
                    event = task.result()
                except StopAsyncIteration:
                    del arena[key]
                    continue
                except FatalAgentError:
                    del arena[key]
                    raise
                except Exception:
                    logger.exception("Stream %d failed; retiring it", key)
                    del arena[key]
                    continue
                yield event
                advance(stream)
    finally:
        for stream in arena.values():
            if stream.pending is not None and not stream.pending.done():
                stream.pending.cancel()


class ParallelAgent(BaseAgent):
    """Runs every sub-agent concurrently, each on its own branch.

    Sub-agents see the shared session but only their own branch of the
    conversation history.
    """

    def _branch_for(self, ctx: InvocationContext, sub_agent: BaseAgent) -> str:
        suffix = f"{self.name}.{sub_agent.name}"
        return f"{ctx.branch}.{suffix}" if ctx.branch else suffix

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        streams = [
            sub_agent.run_async(ctx.create_child_context(sub_agent, self._branch_for(ctx, sub_agent)))
            for sub_agent in self.sub_agents
        ]
        async for event in merge_agent_run(streams):
            yield event

    async def _run_live_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        raise AgentNotImplementedError("This is not supported yet for ParallelAgent.")
        yield  # pragma: no cover
