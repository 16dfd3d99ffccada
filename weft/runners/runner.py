"""Runner: the entry point that turns a user message into a persisted turn."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, AsyncGenerator

from ..agents.base_agent import BaseAgent
from ..agents.invocation_context import InvocationContext
from ..agents.live_request_queue import LiveRequestQueue
from ..agents.llm_agent import LlmAgent
from ..agents.run_config import RunConfig
from ..artifacts.base_artifact_service import BaseArtifactService
from ..errors import SessionNotFoundError, WeftError
from ..events import Event, EventActions
from ..memory.base_memory_service import BaseMemoryService
from ..sessions.base_session_service import BaseSessionService, replay_state
from ..sessions.session import Session
from ..sessions.state import State
from ..types import Blob, Content, Part
from ..utils.ids import new_invocation_id
from .compaction import CompactionConfig, run_compaction_for_sliding_window
from .summarizer import LlmEventSummarizer

logger = logging.getLogger(__name__)


class Runner:
    """Runs an agent tree against a session store.

    Every non-partial event is committed to the session before it reaches
    the caller, so the session never lags behind what has been observed.
    """

    def __init__(
        self,
        *,
        app_name: str,
        agent: BaseAgent,
        session_service: BaseSessionService,
        artifact_service: BaseArtifactService | None = None,
        memory_service: BaseMemoryService | None = None,
        compaction_config: CompactionConfig | None = None,
    ) -> None:
        self.app_name = app_name
        self.agent = agent
        self.session_service = session_service
        self.artifact_service = artifact_service
        self.memory_service = memory_service
        self.compaction_config = compaction_config

    def run(
        self,
        *,
        user_id: str,
        session_id: str,
        new_message: Content,
        run_config: RunConfig | None = None,
    ) -> list[Event]:
        """Blocking convenience wrapper around ``run_async`` for scripts and tests."""

        async def _collect() -> list[Event]:
            return [
                event
                async for event in self.run_async(
                    user_id=user_id, session_id=session_id, new_message=new_message, run_config=run_config
                )
            ]

        return asyncio.run(_collect())

    async def run_async(
        self,
        *,
        user_id: str,
        session_id: str,
        new_message: Content | None = None,
        run_config: RunConfig | None = None,
    ) -> AsyncGenerator[Event, None]:
        run_config = run_config or RunConfig()
        session = await self._get_session(user_id, session_id)
        ctx = self._new_invocation_context(session, new_message=new_message, run_config=run_config)

        if new_message is not None:
            await self._append_new_message_to_session(
                session, new_message, ctx, run_config.save_input_blobs_as_artifacts
            )

        ctx.agent = self._find_agent_to_run(session)
        logger.debug("Invocation %s starts at agent %s", ctx.invocation_id, ctx.agent.name)

        async for event in self._commit_events(session, ctx.agent.run_async(ctx)):
            yield event

        await self._run_compaction(session)

    async def run_live(
        self,
        *,
        user_id: str,
        session_id: str,
        live_request_queue: LiveRequestQueue,
        run_config: RunConfig | None = None,
    ) -> AsyncGenerator[Event, None]:
        """Serve queued inputs as turns until the queue is closed."""
        session = await self._get_session(user_id, session_id)
        ctx = self._new_invocation_context(session, run_config=run_config or RunConfig())
        ctx.live_request_queue = live_request_queue
        ctx.agent = self._find_agent_to_run(session)

        async for event in self._commit_events(session, ctx.agent.run_live(ctx)):
            yield event

    async def rewind(self, *, user_id: str, session_id: str, rewind_before_invocation_id: str) -> Event:
        """Append an event undoing everything from the given invocation onward.

        Session-scoped state and artifacts are restored to their values just
        before the invocation's first event; ``app:`` and ``user:`` state is
        left alone. History assembly skips the rewound events.
        """
        session = await self._get_session(user_id, session_id)
        index = next(
            (i for i, e in enumerate(session.events) if e.invocation_id == rewind_before_invocation_id),
            None,
        )
        if index is None:
            raise WeftError("INVOCATION_NOT_FOUND", f"Invocation ID not found: {rewind_before_invocation_id}")

        event = Event(
            invocation_id=new_invocation_id(),
            author="user",
            actions=EventActions(
                rewind_before_invocation_id=rewind_before_invocation_id,
                state_delta=self._compute_state_delta_for_rewind(session, index),
                artifact_delta=await self._compute_artifact_delta_for_rewind(session, index),
            ),
        )
        logger.info("Rewinding session %s before invocation %s", session.id, rewind_before_invocation_id)
        return await self.session_service.append_event(session, event)

    # ---- internals ----

    async def _get_session(self, user_id: str, session_id: str) -> Session:
        session = await self.session_service.get_session(
            app_name=self.app_name, user_id=user_id, session_id=session_id
        )
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _new_invocation_context(
        self, session: Session, *, new_message: Content | None = None, run_config: RunConfig
    ) -> InvocationContext:
        return InvocationContext(
            session_service=self.session_service,
            invocation_id=new_invocation_id(),
            agent=self.agent,
            session=session,
            artifact_service=self.artifact_service,
            memory_service=self.memory_service,
            user_content=new_message,
            run_config=run_config,
        )

    async def _commit_events(
        self, session: Session, events: AsyncGenerator[Event, None]
    ) -> AsyncGenerator[Event, None]:
        async for event in events:
            if not event.partial:
                await self.session_service.append_event(session, event)
                if self.memory_service is not None:
                    await self.memory_service.add_session_to_memory(session)
            yield event

    async def _append_new_message_to_session(
        self,
        session: Session,
        new_message: Content,
        ctx: InvocationContext,
        save_input_blobs_as_artifacts: bool,
    ) -> None:
        if not new_message.parts:
            raise ValueError("No parts in the new_message.")

        content = copy.deepcopy(new_message)
        content.role = "user"
        if self.artifact_service is not None and save_input_blobs_as_artifacts:
            for i, part in enumerate(content.parts):
                if part.inline_data is None:
                    continue
                file_name = f"artifact_{ctx.invocation_id}_{i}"
                await self.artifact_service.save_artifact(
                    app_name=self.app_name,
                    user_id=session.user_id,
                    session_id=session.id,
                    filename=file_name,
                    artifact=part,
                )
                content.parts[i] = Part(text=f"Uploaded file: {file_name}. It is saved into artifacts")

        event = Event(invocation_id=ctx.invocation_id, author="user", content=content)
        await self.session_service.append_event(session, event)

    def _find_agent_to_run(self, session: Session) -> BaseAgent:
        root = self.agent
        call_event = _find_function_call_event_if_last_event_is_function_response(session)
        if call_event is not None and call_event.author:
            return root.find_agent(call_event.author) or root

        for event in reversed(session.events):
            if event.author == "user":
                continue
            if event.author == root.name:
                return root
            agent = root.find_sub_agent(event.author)
            if agent is None:
                logger.debug("Event from an unknown agent: %s, event id: %s", event.author, event.id)
                continue
            if self._is_transferable_across_agent_tree(agent):
                return agent
        return root

    @staticmethod
    def _is_transferable_across_agent_tree(agent_to_run: BaseAgent) -> bool:
        agent: BaseAgent | None = agent_to_run
        while agent is not None:
            if not isinstance(agent, LlmAgent) or agent.disallow_transfer_to_parent:
                return False
            agent = agent.parent_agent
        return True

    async def _run_compaction(self, session: Session) -> None:
        if self.compaction_config is None:
            return
        summarizer = self.compaction_config.summarizer
        if summarizer is None and isinstance(self.agent, LlmAgent):
            try:
                summarizer = LlmEventSummarizer(self.agent.canonical_model)
            except ValueError as e:
                logger.warning("Could not build default summarizer: %s", e)
        if summarizer is None:
            logger.warning("Event compaction configured but no summarizer available")
            return
        await run_compaction_for_sliding_window(self.compaction_config, session, self.session_service, summarizer)

    @staticmethod
    def _compute_state_delta_for_rewind(session: Session, index: int) -> dict[str, Any]:
        def scoped(key: str) -> bool:
            return key.startswith(State.APP_PREFIX) or key.startswith(State.USER_PREFIX)

        before = {k: v for k, v in replay_state(session.events[:index]).items() if not scoped(k)}
        delta: dict[str, Any] = {}
        for key, value in before.items():
            if key not in session.state or session.state[key] != value:
                delta[key] = copy.deepcopy(value)
        for key in session.state:
            if not scoped(key) and key not in before:
                delta[key] = None
        return delta

    async def _compute_artifact_delta_for_rewind(self, session: Session, index: int) -> dict[str, int]:
        if self.artifact_service is None:
            return {}

        versions_before: dict[str, int] = {}
        for event in session.events[:index]:
            versions_before.update(event.actions.artifact_delta)
        versions_now: dict[str, int] = {}
        for event in session.events:
            versions_now.update(event.actions.artifact_delta)

        delta: dict[str, int] = {}
        for filename, current in versions_now.items():
            if filename.startswith(State.USER_PREFIX):
                continue
            previous = versions_before.get(filename)
            if previous == current:
                continue
            artifact = None
            if previous is not None:
                artifact = await self.artifact_service.load_artifact(
                    app_name=self.app_name,
                    user_id=session.user_id,
                    session_id=session.id,
                    filename=filename,
                    version=previous,
                )
            if artifact is None:
                artifact = Part(inline_data=Blob(mime_type="application/octet-stream", data=b""))
            delta[filename] = await self.artifact_service.save_artifact(
                app_name=self.app_name,
                user_id=session.user_id,
                session_id=session.id,
                filename=filename,
                artifact=artifact,
            )
        return delta


def _find_function_call_event_if_last_event_is_function_response(session: Session) -> Event | None:
    if not session.events:
        return None
    responses = session.events[-1].get_function_responses()
    if not responses or not responses[0].id:
        return None
    call_id = responses[0].id
    for event in reversed(session.events[:-1]):
        if any(call.id == call_id for call in event.get_function_calls()):
            return event
    return None
