"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from weft.agents.base_agent import BaseAgent
from weft.agents.invocation_context import InvocationContext
from weft.agents.run_config import RunConfig
from weft.artifacts import InMemoryArtifactService
from weft.events import Event
from weft.memory import InMemoryMemoryService
from weft.models import LlmResponse
from weft.sessions import InMemorySessionService
from weft.types import Content, Part

APP = "test_app"
USER = "u1"


def text_event(author: str, text: str, **kwargs) -> Event:
    role = "user" if author == "user" else "model"
    return Event(author=author, content=Content.from_text(text, role=role), **kwargs)


def call_response(name: str, args: dict | None = None, call_id: str | None = None) -> LlmResponse:
    return LlmResponse(content=Content(role="model", parts=[Part.from_function_call(name, args or {}, call_id)]))


def texts(events: list[Event]) -> list[str]:
    return [e.content.text for e in events if e.content and e.content.text]


@pytest.fixture
def session_service() -> InMemorySessionService:
    return InMemorySessionService()


@pytest.fixture
def artifact_service() -> InMemoryArtifactService:
    return InMemoryArtifactService()


@pytest.fixture
def memory_service() -> InMemoryMemoryService:
    return InMemoryMemoryService()


@pytest.fixture
def make_context(
    session_service, artifact_service
) -> Callable[..., Awaitable[InvocationContext]]:
    """Factory for an invocation context over a fresh session holding one user turn."""

    async def _make(
        agent: BaseAgent,
        user_text: str | None = "hi",
        run_config: RunConfig | None = None,
        state: dict | None = None,
    ) -> InvocationContext:
        session = await session_service.create_session(app_name=APP, user_id=USER, state=state)
        ctx = InvocationContext(
            session_service=session_service,
            invocation_id="inv-1",
            agent=agent,
            session=session,
            artifact_service=artifact_service,
            run_config=run_config or RunConfig(),
        )
        if user_text is not None:
            ctx.user_content = Content.from_text(user_text)
            await session_service.append_event(
                session, Event(invocation_id=ctx.invocation_id, author="user", content=ctx.user_content)
            )
        return ctx

    return _make


async def collect(ctx: InvocationContext, agent: BaseAgent | None = None, commit: bool = True) -> list[Event]:
    """Run ``agent`` and commit non-partial events the way a runner does."""
    agent = agent or ctx.agent
    events = []
    async for event in agent.run_async(ctx):
        if commit and not event.partial:
            await ctx.session_service.append_event(ctx.session, event)
        events.append(event)
    return events


class EchoAgent(BaseAgent):
    """Non-model agent that emits one fixed text event per run."""

    def __init__(self, name: str, text: str | None = None, **kwargs) -> None:
        super().__init__(name, **kwargs)
        self.text = text or f"{name} done"
        self.runs = 0

    async def _run_async_impl(self, ctx: InvocationContext):
        self.runs += 1
        yield Event(
            invocation_id=ctx.invocation_id,
            author=self.name,
            branch=ctx.branch,
            content=Content.from_text(self.text, role="model"),
        )


class FailingAgent(BaseAgent):
    def __init__(self, name: str, error: Exception) -> None:
        super().__init__(name)
        self.error = error

    async def _run_async_impl(self, ctx: InvocationContext):
        raise self.error
        yield
