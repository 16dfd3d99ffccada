"""Long-term memory interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..types import Content

if TYPE_CHECKING:
    from ..sessions import Session


@dataclass
class MemoryEntry:
    content: Content
    author: str | None = None
    timestamp: str | None = None


@dataclass
class SearchMemoryResponse:
    memories: list[MemoryEntry] = field(default_factory=list)


class BaseMemoryService(ABC):
    @abstractmethod
    async def add_session_to_memory(self, session: Session) -> None: ...

    @abstractmethod
    async def search_memory(self, *, app_name: str, user_id: str, query: str) -> SearchMemoryResponse: ...
