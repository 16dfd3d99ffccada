"""Directed-graph executor over agent nodes."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Awaitable, Callable, Union

from ..errors import AgentConfigError, FatalAgentError
from ..events import Event
from ..types import Content, Part
from ..utils.callbacks import CallbackOrList, resolve
from .base_agent import BaseAgent
from .invocation_context import InvocationContext

logger = logging.getLogger(__name__)

EdgeCondition = Callable[[Event | None], Union[bool, Awaitable[bool]]]


@dataclass
class GraphEdge:
    target: str
    condition: EdgeCondition | None = None


@dataclass
class GraphNode:
    """A graph vertex wrapping one agent.

    ``targets`` may hold plain node names or ``GraphEdge`` entries carrying
    their own condition. ``condition`` gates entry into this node.
    """

    name: str
    agent: BaseAgent
    targets: list[str | GraphEdge] = field(default_factory=list)
    condition: EdgeCondition | None = None

    @property
    def edges(self) -> list[GraphEdge]:
        return [t if isinstance(t, GraphEdge) else GraphEdge(target=t) for t in self.targets]


@dataclass
class NodeResult:
    node: str
    events: list[Event]


class GraphAgent(BaseAgent):
    """Walks a node graph breadth-first from ``root_node``.

    After a node runs, each outgoing edge is followed when both the edge
    condition and the target's node condition accept the node's last event.
    Traversal stops when no edges remain or after ``max_steps`` nodes.

    Concurrent runs of one graph keep separate traces. ``executed_nodes``
    and ``get_execution_results`` report the most recently finished run.
    """

    def __init__(
        self,
        name: str,
        nodes: list[GraphNode],
        root_node: str,
        description: str = "",
        max_steps: int = 50,
        before_agent_callback: CallbackOrList = None,
        after_agent_callback: CallbackOrList = None,
    ) -> None:
        self.nodes: dict[str, GraphNode] = {}
        for node in nodes:
            if node.name in self.nodes:
                raise AgentConfigError(f"Duplicate node name in graph: {node.name}")
            self.nodes[node.name] = node
        if root_node not in self.nodes:
            raise AgentConfigError(f"Root node '{root_node}' not found in graph nodes")
        for node in nodes:
            for edge in node.edges:
                if edge.target not in self.nodes:
                    raise AgentConfigError(
                        f"Target node '{edge.target}' not found in graph nodes (referenced by '{node.name}')"
                    )

        super().__init__(
            name,
            description=description,
            sub_agents=[node.agent for node in nodes],
            before_agent_callback=before_agent_callback,
            after_agent_callback=after_agent_callback,
        )
        self.root_node = root_node
        self.max_steps = max_steps
        self.executed_nodes: list[str] = []
        self._results: list[NodeResult] = []

    def set_max_steps(self, max_steps: int) -> None:
        if max_steps <= 0:
            raise AgentConfigError("max_steps must be greater than 0")
        self.max_steps = max_steps

    def get_max_steps(self) -> int:
        return self.max_steps

    def get_nodes(self) -> list[GraphNode]:
        return list(self.nodes.values())

    def get_node(self, name: str) -> GraphNode | None:
        return self.nodes.get(name)

    def get_root_node_name(self) -> str:
        return self.root_node

    def get_execution_results(self) -> list[NodeResult]:
        return list(self._results)

    def clear_execution_history(self) -> None:
        self.executed_nodes = []
        self._results = []

    async def _accepts(self, condition: EdgeCondition | None, last_event: Event | None, label: str) -> bool:
        if condition is None:
            return True
        try:
            return bool(await resolve(condition(last_event)))
        except Exception:
            logger.exception("Condition for %s raised; skipping edge", label)
            return False

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        # Each run keeps its own trace; the instance only mirrors the latest finished run.
        executed: list[str] = []
        results: list[NodeResult] = []
        try:
            async for event in self._traverse(ctx, executed, results):
                yield event
        finally:
            self.executed_nodes = executed
            self._results = results

    async def _traverse(
        self, ctx: InvocationContext, executed: list[str], results: list[NodeResult]
    ) -> AsyncGenerator[Event, None]:
        queue: deque[str] = deque([self.root_node])
        steps = 0

        while queue and steps < self.max_steps:
            steps += 1
            node = self.nodes[queue.popleft()]
            executed.append(node.name)
            events: list[Event] = []
            try:
                async for event in node.agent.run_async(ctx.create_child_context(node.agent)):
                    events.append(event)
                    yield event
            except FatalAgentError:
                raise
            except Exception as e:
                logger.exception("Graph node %s failed", node.name)
                yield Event(
                    invocation_id=ctx.invocation_id,
                    author=self.name,
                    branch=ctx.branch,
                    content=Content(role="model", parts=[Part(text=f"Error in node {node.name}: {e}")]),
                    error_code="NODE_EXECUTION_ERROR",
                    error_message=str(e),
                )
                return

            results.append(NodeResult(node=node.name, events=events))
            last_event = events[-1] if events else None

            for edge in node.edges:
                label = f"{node.name} -> {edge.target}"
                if not await self._accepts(edge.condition, last_event, label):
                    continue
                if not await self._accepts(self.nodes[edge.target].condition, last_event, label):
                    continue
                queue.append(edge.target)

        if queue:
            logger.warning("Graph %s stopped after max_steps=%d", self.name, self.max_steps)

        yield Event(
            invocation_id=ctx.invocation_id,
            author=self.name,
            branch=ctx.branch,
            content=Content(
                role="model",
                parts=[Part(text=f"Graph execution complete. Executed nodes: {' → '.join(executed)}")],
            ),
            turn_complete=True,
        )

    async def _run_live_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        async for event in self._run_async_impl(ctx):
            yield event

    def describe(self) -> dict[str, Any]:
        return {
            "root": self.root_node,
            "nodes": {n.name: [e.target for e in n.edges] for n in self.nodes.values()},
        }
