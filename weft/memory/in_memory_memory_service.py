"""Keyword-matching memory kept in process."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .base_memory_service import BaseMemoryService, MemoryEntry, SearchMemoryResponse

if TYPE_CHECKING:
    from ..events import Event
    from ..sessions import Session

_WORD = re.compile(r"[A-Za-z]+")


def _words_lower(text: str) -> set[str]:
    return {w.lower() for w in _WORD.findall(text)}


def format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class InMemoryMemoryService(BaseMemoryService):
    def __init__(self) -> None:
        self._session_events: dict[str, dict[str, list[Event]]] = {}

    async def add_session_to_memory(self, session: Session) -> None:
        key = f"{session.app_name}/{session.user_id}"
        self._session_events.setdefault(key, {})[session.id] = [
            e for e in session.events if e.content and e.content.parts
        ]

    async def search_memory(self, *, app_name: str, user_id: str, query: str) -> SearchMemoryResponse:
        sessions = self._session_events.get(f"{app_name}/{user_id}")
        response = SearchMemoryResponse()
        if not sessions:
            return response
        query_words = set(query.lower().split())
        for events in sessions.values():
            for event in events:
                words = _words_lower(" ".join(p.text for p in event.content.parts if p.text))
                if words and query_words & words:
                    response.memories.append(
                        MemoryEntry(
                            content=event.content,
                            author=event.author,
                            timestamp=format_timestamp(event.timestamp),
                        )
                    )
        return response

    def clear(self) -> None:
        self._session_events.clear()
