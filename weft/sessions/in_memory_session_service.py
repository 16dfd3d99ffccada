"""In-process session store."""

from __future__ import annotations

import copy
import logging
import time
import uuid
from typing import Any

from ..events import Event
from .base_session_service import BaseSessionService
from .session import GetSessionConfig, ListSessionsResponse, Session
from .state import State, apply_state_delta

logger = logging.getLogger(__name__)


class InMemorySessionService(BaseSessionService):
    """Keeps sessions in nested dicts; not for production use.

    ``app:`` and ``user:`` keys are stored once per app / per user and merged
    back into every session returned.
    """

    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, dict[str, Session]]] = {}
        self.user_state: dict[str, dict[str, dict[str, Any]]] = {}
        self.app_state: dict[str, dict[str, Any]] = {}

    async def create_session(
        self,
        *,
        app_name: str,
        user_id: str,
        state: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Session:
        session_id = session_id.strip() if session_id and session_id.strip() else str(uuid.uuid4())
        session_state: dict[str, Any] = {}
        for key, value in (state or {}).items():
            if key.startswith(State.APP_PREFIX):
                self.app_state.setdefault(app_name, {})[key[len(State.APP_PREFIX):]] = value
            elif key.startswith(State.USER_PREFIX):
                self.user_state.setdefault(app_name, {}).setdefault(user_id, {})[
                    key[len(State.USER_PREFIX):]
                ] = value
            elif not key.startswith(State.TEMP_PREFIX):
                session_state[key] = value

        session = Session(
            id=session_id,
            app_name=app_name,
            user_id=user_id,
            state=session_state,
            last_update_time=time.time(),
        )
        self.sessions.setdefault(app_name, {}).setdefault(user_id, {})[session_id] = session
        logger.debug("Created session %s for %s/%s", session_id, app_name, user_id)
        return self._merge_state(app_name, user_id, copy.deepcopy(session))

    async def get_session(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        config: GetSessionConfig | None = None,
    ) -> Session | None:
        session = self.sessions.get(app_name, {}).get(user_id, {}).get(session_id)
        if session is None:
            return None
        result = copy.deepcopy(session)
        if config:
            if config.num_recent_events:
                result.events = result.events[-config.num_recent_events:]
            if config.after_timestamp is not None:
                result.events = [e for e in result.events if e.timestamp >= config.after_timestamp]
        return self._merge_state(app_name, user_id, result)

    async def list_sessions(self, *, app_name: str, user_id: str) -> ListSessionsResponse:
        sessions = []
        for session in self.sessions.get(app_name, {}).get(user_id, {}).values():
            copied = copy.deepcopy(session)
            copied.events = []
            copied.state = {}
            sessions.append(copied)
        return ListSessionsResponse(sessions=sessions)

    async def delete_session(self, *, app_name: str, user_id: str, session_id: str) -> None:
        self.sessions.get(app_name, {}).get(user_id, {}).pop(session_id, None)

    async def append_event(self, session: Session, event: Event) -> Event:
        await super().append_event(session, event)
        if event.partial:
            return event

        stored = self.sessions.get(session.app_name, {}).get(session.user_id, {}).get(session.id)
        if stored is None:
            logger.warning("append_event: session %s not found in store", session.id)
            return event

        session_delta: dict[str, Any] = {}
        for key, value in event.actions.state_delta.items():
            if key.startswith(State.APP_PREFIX):
                self._write_scoped(
                    self.app_state.setdefault(session.app_name, {}),
                    key[len(State.APP_PREFIX):], value,
                )
            elif key.startswith(State.USER_PREFIX):
                self._write_scoped(
                    self.user_state.setdefault(session.app_name, {}).setdefault(session.user_id, {}),
                    key[len(State.USER_PREFIX):], value,
                )
            else:
                session_delta[key] = value

        # Stored sessions hold only session-scoped keys; scoped ones are merged on read.
        apply_state_delta(stored.state, copy.deepcopy(session_delta))
        stored.events.append(copy.deepcopy(event))
        stored.last_update_time = event.timestamp
        return event

    @staticmethod
    def _write_scoped(target: dict[str, Any], key: str, value: Any) -> None:
        if value is None:
            target.pop(key, None)
        else:
            target[key] = value

    def _merge_state(self, app_name: str, user_id: str, session: Session) -> Session:
        for key, value in self.app_state.get(app_name, {}).items():
            session.state[State.APP_PREFIX + key] = value
        for key, value in self.user_state.get(app_name, {}).get(user_id, {}).items():
            session.state[State.USER_PREFIX + key] = value
        return session
