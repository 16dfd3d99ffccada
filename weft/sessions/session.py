"""Session types."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from ..events import Event


@dataclass
class Session:
    id: str
    app_name: str
    user_id: str
    state: dict[str, Any] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)
    last_update_time: float = field(default_factory=time.time)


@dataclass
class GetSessionConfig:
    num_recent_events: int | None = None
    after_timestamp: float | None = None


@dataclass
class ListSessionsResponse:
    sessions: list[Session] = field(default_factory=list)
