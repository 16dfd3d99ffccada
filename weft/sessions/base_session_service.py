"""Session store interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from ..events import Event
from .session import GetSessionConfig, ListSessionsResponse, Session
from .state import State, apply_state_delta

logger = logging.getLogger(__name__)


def replay_state(events: Iterable[Event]) -> dict[str, Any]:
    """Rebuild state by folding every committed delta from empty state."""
    state: dict[str, Any] = {}
    for event in events:
        if event.partial:
            continue
        apply_state_delta(state, event.actions.state_delta)
    return state


class BaseSessionService(ABC):
    @abstractmethod
    async def create_session(
        self,
        *,
        app_name: str,
        user_id: str,
        state: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Session: ...

    @abstractmethod
    async def get_session(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        config: GetSessionConfig | None = None,
    ) -> Session | None: ...

    @abstractmethod
    async def list_sessions(self, *, app_name: str, user_id: str) -> ListSessionsResponse: ...

    @abstractmethod
    async def delete_session(self, *, app_name: str, user_id: str, session_id: str) -> None: ...

    async def append_event(self, session: Session, event: Event) -> Event:
        """Commit ``event`` to ``session``. Partial events are never logged."""
        if event.partial:
            return event
        self._trim_temp_delta(event)
        self._update_session_state(session, event)
        session.events.append(event)
        session.last_update_time = event.timestamp
        return event

    @staticmethod
    def _trim_temp_delta(event: Event) -> None:
        delta = event.actions.state_delta
        for key in [k for k in delta if k.startswith(State.TEMP_PREFIX)]:
            del delta[key]

    @staticmethod
    def _update_session_state(session: Session, event: Event) -> None:
        if event.actions.state_delta:
            apply_state_delta(session.state, event.actions.state_delta)
