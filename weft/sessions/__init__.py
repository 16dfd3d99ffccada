"""Session persistence and state."""

from .base_session_service import BaseSessionService, replay_state
from .in_memory_session_service import InMemorySessionService
from .session import GetSessionConfig, ListSessionsResponse, Session
from .state import State, apply_state_delta

__all__ = [
    "BaseSessionService",
    "GetSessionConfig",
    "InMemorySessionService",
    "ListSessionsResponse",
    "Session",
    "State",
    "apply_state_delta",
    "replay_state",
]
