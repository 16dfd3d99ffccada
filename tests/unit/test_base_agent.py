"""Unit tests for BaseAgent: naming, tree links and agent callbacks."""

import pytest

from weft.agents import BaseAgent, ParallelAgent
from weft.errors import AgentConfigError, AgentNotImplementedError
from weft.types import Content
from tests.conftest import EchoAgent, collect, texts


class TestAgentTree:
    @pytest.mark.parametrize("name", ["bad-name", "1st", "has space"])
    def test_rejects_non_identifier_names(self, name):
        with pytest.raises(AgentConfigError, match="invalid agent name"):
            EchoAgent(name)

    def test_rejects_reserved_user_name(self):
        with pytest.raises(AgentConfigError, match="cannot be `user`"):
            EchoAgent("user")

    def test_single_parent(self):
        child = EchoAgent("child")
        EchoAgent("first", sub_agents=[child])
        with pytest.raises(AgentConfigError, match="already has a parent agent"):
            EchoAgent("second", sub_agents=[child])

    def test_find_agent_and_root(self):
        leaf = EchoAgent("leaf")
        mid = EchoAgent("mid", sub_agents=[leaf])
        root = EchoAgent("root", sub_agents=[mid, EchoAgent("other")])

        assert root.find_agent("root") is root
        assert root.find_agent("leaf") is leaf
        assert root.find_sub_agent("root") is None
        assert root.find_agent("missing") is None
        assert leaf.root_agent is root
        assert leaf.parent_agent is mid


class TestAgentCallbacks:
    async def test_before_callback_content_ends_invocation(self, make_context):
        agent = EchoAgent(
            "a",
            before_agent_callback=lambda callback_context: Content.from_text("blocked", role="model"),
        )
        ctx = await make_context(agent)

        events = await collect(ctx)

        assert texts(events) == ["blocked"]
        assert agent.runs == 0

    async def test_first_non_empty_callback_wins(self, make_context):
        agent = EchoAgent(
            "a",
            before_agent_callback=[
                lambda callback_context: None,
                lambda callback_context: Content.from_text("second", role="model"),
                lambda callback_context: Content.from_text("third", role="model"),
            ],
        )
        ctx = await make_context(agent)
        assert texts(await collect(ctx)) == ["second"]

    async def test_before_callback_state_only_emits_delta_event(self, make_context):
        def mark(callback_context):
            callback_context.state["started"] = True

        agent = EchoAgent("a", before_agent_callback=mark)
        ctx = await make_context(agent)

        events = await collect(ctx)

        assert events[0].content is None
        assert events[0].actions.state_delta == {"started": True}
        assert texts(events) == ["a done"]
        assert ctx.session.state["started"] is True

    async def test_after_callback_appends_event(self, make_context):
        async def wrap_up(callback_context):
            return Content.from_text("after", role="model")

        agent = EchoAgent("a", after_agent_callback=wrap_up)
        ctx = await make_context(agent)
        assert texts(await collect(ctx)) == ["a done", "after"]

    async def test_after_callback_without_output_is_silent(self, make_context):
        agent = EchoAgent("a", after_agent_callback=lambda callback_context: None)
        ctx = await make_context(agent)
        assert len(await collect(ctx)) == 1


class TestNotImplemented:
    async def test_base_agent_run_raises(self, make_context):
        agent = BaseAgent("plain")
        ctx = await make_context(agent)
        with pytest.raises(AgentNotImplementedError, match="_run_async_impl for BaseAgent"):
            await collect(ctx)

    async def test_parallel_live_unsupported(self, make_context):
        agent = ParallelAgent("p", sub_agents=[EchoAgent("a")])
        ctx = await make_context(agent)
        with pytest.raises(AgentNotImplementedError, match="not supported yet for ParallelAgent"):
            async for _ in agent.run_live(ctx):
                pass
