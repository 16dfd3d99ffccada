"""Long-term memory."""

from .base_memory_service import BaseMemoryService, MemoryEntry, SearchMemoryResponse
from .in_memory_memory_service import InMemoryMemoryService

__all__ = ["BaseMemoryService", "InMemoryMemoryService", "MemoryEntry", "SearchMemoryResponse"]
