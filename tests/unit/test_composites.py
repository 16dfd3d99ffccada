"""Unit tests for sequential, loop and graph composition."""

import asyncio

import pytest

from weft.agents import BaseAgent, GraphAgent, GraphEdge, GraphNode, LlmAgent, LoopAgent, SequentialAgent
from weft.errors import AgentConfigError, InvariantViolationError
from weft.events import Event
from weft.models import MockLlm
from weft.tools import exit_loop
from weft.types import Content
from tests.conftest import EchoAgent, FailingAgent, call_response, collect, texts


class RouterAgent(BaseAgent):
    """Emits the session's ``route`` value after an optional ``delay``."""

    async def _run_async_impl(self, ctx):
        await asyncio.sleep(ctx.session.state.get("delay", 0))
        yield Event(
            invocation_id=ctx.invocation_id,
            author=self.name,
            branch=ctx.branch,
            content=Content.from_text(ctx.session.state["route"], role="model"),
        )


class TestSequentialAgent:
    async def test_runs_children_in_order(self, make_context):
        agent = SequentialAgent("seq", sub_agents=[EchoAgent("a"), EchoAgent("b")])
        ctx = await make_context(agent)

        events = await collect(ctx)

        assert [e.author for e in events] == ["a", "b"]
        assert all(e.branch is None for e in events)

    async def test_later_child_sees_earlier_output(self, make_context):
        llm = MockLlm(["reviewed"])
        agent = SequentialAgent("seq", sub_agents=[EchoAgent("writer", "draft"), LlmAgent("reviewer", model=llm)])
        ctx = await make_context(agent)

        await collect(ctx)

        history = [c.text for c in llm.requests[0].contents]
        assert history == ["hi", "For context:[writer] said: draft"]


class TestLoopAgent:
    async def test_iteration_cap(self, make_context):
        a, b = EchoAgent("a"), EchoAgent("b")
        agent = LoopAgent("loop", sub_agents=[a, b], max_iterations=3)
        ctx = await make_context(agent)

        events = await collect(ctx)

        assert [e.author for e in events] == ["a", "b"] * 3
        assert a.runs == b.runs == 3

    async def test_escalation_stops_loop(self, make_context):
        worker = EchoAgent("worker")
        checker = LlmAgent("checker", model=MockLlm([call_response("exit_loop")]), tools=[exit_loop])
        after = EchoAgent("after")
        agent = LoopAgent("loop", sub_agents=[worker, checker, after])
        ctx = await make_context(agent)

        events = await collect(ctx)

        assert events[-1].actions.escalate is True
        assert worker.runs == 1
        assert after.runs == 0


class TestGraphAgent:
    def _graph(self, **kwargs):
        return GraphAgent(
            "graph",
            nodes=[
                GraphNode(
                    "S",
                    EchoAgent("start"),
                    targets=[GraphEdge("T1", condition=lambda e: True), GraphEdge("T2", condition=lambda e: False)],
                ),
                GraphNode("T1", EchoAgent("yes")),
                GraphNode("T2", EchoAgent("no")),
            ],
            root_node="S",
            **kwargs,
        )

    async def test_conditional_edges(self, make_context):
        graph = self._graph()
        ctx = await make_context(graph)

        events = await collect(ctx)

        assert [e.author for e in events] == ["start", "yes", "graph"]
        assert events[-1].content.text == "Graph execution complete. Executed nodes: S → T1"
        assert graph.executed_nodes == ["S", "T1"]
        assert [r.node for r in graph.get_execution_results()] == ["S", "T1"]
        assert events[0].branch == "start"

    async def test_node_condition_gates_entry(self, make_context):
        graph = GraphAgent(
            "graph",
            nodes=[
                GraphNode("S", EchoAgent("start", "skip"), targets=["T"]),
                GraphNode("T", EchoAgent("target"), condition=lambda e: e.content.text != "skip"),
            ],
            root_node="S",
        )
        ctx = await make_context(graph)
        await collect(ctx)
        assert graph.executed_nodes == ["S"]

    async def test_raising_condition_skips_edge(self, make_context):
        def broken(event):
            raise RuntimeError("bad condition")

        graph = GraphAgent(
            "graph",
            nodes=[
                GraphNode("S", EchoAgent("start"), targets=[GraphEdge("T", condition=broken)]),
                GraphNode("T", EchoAgent("target")),
            ],
            root_node="S",
        )
        ctx = await make_context(graph)
        await collect(ctx)
        assert graph.executed_nodes == ["S"]

    async def test_async_condition(self, make_context):
        async def ready(event):
            return event is not None

        graph = GraphAgent(
            "graph",
            nodes=[
                GraphNode("S", EchoAgent("start"), targets=[GraphEdge("T", condition=ready)]),
                GraphNode("T", EchoAgent("target")),
            ],
            root_node="S",
        )
        ctx = await make_context(graph)
        await collect(ctx)
        assert graph.executed_nodes == ["S", "T"]

    async def test_max_steps_bounds_cycles(self, make_context):
        graph = GraphAgent(
            "graph", nodes=[GraphNode("A", EchoAgent("again"), targets=["A"])], root_node="A", max_steps=3
        )
        ctx = await make_context(graph)
        events = await collect(ctx)
        assert graph.executed_nodes == ["A", "A", "A"]
        assert events[-1].content.text.endswith("A → A → A")

    async def test_node_error_becomes_error_event(self, make_context):
        graph = GraphAgent(
            "graph",
            nodes=[
                GraphNode("S", EchoAgent("start"), targets=["B"]),
                GraphNode("B", FailingAgent("boom", RuntimeError("node broke"))),
            ],
            root_node="S",
        )
        ctx = await make_context(graph)

        events = await collect(ctx)

        assert events[-1].error_code == "NODE_EXECUTION_ERROR"
        assert events[-1].content.text == "Error in node B: node broke"
        assert graph.executed_nodes == ["S", "B"]

    async def test_concurrent_runs_keep_separate_traces(self, make_context):
        graph = GraphAgent(
            "graph",
            nodes=[
                GraphNode(
                    "S",
                    RouterAgent("router"),
                    targets=[
                        GraphEdge("L", condition=lambda e: e.content.text == "left"),
                        GraphEdge("R", condition=lambda e: e.content.text == "right"),
                    ],
                ),
                GraphNode("L", EchoAgent("left")),
                GraphNode("R", EchoAgent("right")),
            ],
            root_node="S",
        )
        slow = await make_context(graph, state={"route": "left", "delay": 0.05})
        fast = await make_context(graph, state={"route": "right"})

        slow_events, fast_events = await asyncio.gather(collect(slow), collect(fast))

        assert slow_events[-1].content.text == "Graph execution complete. Executed nodes: S → L"
        assert fast_events[-1].content.text == "Graph execution complete. Executed nodes: S → R"
        assert graph.executed_nodes == ["S", "L"]
        assert [r.node for r in graph.get_execution_results()] == ["S", "L"]

    async def test_fatal_node_error_propagates(self, make_context):
        graph = GraphAgent(
            "graph",
            nodes=[GraphNode("S", FailingAgent("boom", InvariantViolationError("corrupt")))],
            root_node="S",
        )
        ctx = await make_context(graph)
        with pytest.raises(InvariantViolationError, match="corrupt"):
            await collect(ctx)

    def test_validation(self):
        with pytest.raises(AgentConfigError, match="Duplicate node name"):
            GraphAgent("g", nodes=[GraphNode("A", EchoAgent("a")), GraphNode("A", EchoAgent("b"))], root_node="A")
        with pytest.raises(AgentConfigError, match="Root node 'Z' not found"):
            GraphAgent("g", nodes=[GraphNode("A", EchoAgent("a"))], root_node="Z")
        with pytest.raises(AgentConfigError, match="Target node 'Z' not found"):
            GraphAgent("g", nodes=[GraphNode("A", EchoAgent("a"), targets=["Z"])], root_node="A")

    def test_max_steps_accessors(self):
        graph = self._graph(max_steps=5)
        assert graph.get_max_steps() == 5
        graph.set_max_steps(2)
        assert graph.get_max_steps() == 2
        with pytest.raises(AgentConfigError, match="greater than 0"):
            graph.set_max_steps(0)

    def test_describe(self):
        graph = self._graph()
        assert graph.describe() == {"root": "S", "nodes": {"S": ["T1", "T2"], "T1": [], "T2": []}}
        assert graph.get_root_node_name() == "S"
        assert graph.get_node("T1").agent.name == "yes"
