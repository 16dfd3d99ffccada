"""Runner wired to the in-memory services."""

from __future__ import annotations

from ..agents.base_agent import BaseAgent
from ..artifacts.in_memory_artifact_service import InMemoryArtifactService
from ..memory.in_memory_memory_service import InMemoryMemoryService
from ..sessions.in_memory_session_service import InMemorySessionService
from .compaction import CompactionConfig
from .runner import Runner


class InMemoryRunner(Runner):
    def __init__(
        self,
        agent: BaseAgent,
        *,
        app_name: str = "InMemoryRunner",
        compaction_config: CompactionConfig | None = None,
    ) -> None:
        super().__init__(
            app_name=app_name,
            agent=agent,
            session_service=InMemorySessionService(),
            artifact_service=InMemoryArtifactService(),
            memory_service=InMemoryMemoryService(),
            compaction_config=compaction_config,
        )
