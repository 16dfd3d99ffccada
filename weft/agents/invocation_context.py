"""Per-branch invocation handle threaded through every agent run."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..errors import LlmCallsLimitExceededError
from ..types import Content
from .run_config import RunConfig

if TYPE_CHECKING:
    from ..artifacts import BaseArtifactService
    from ..memory import BaseMemoryService
    from ..sessions import BaseSessionService, Session
    from .base_agent import BaseAgent
    from .live_request_queue import LiveRequestQueue


class _InvocationCostManager:
    """Call counter shared by reference between every fork of one invocation."""

    def __init__(self) -> None:
        self.number_of_llm_calls = 0

    def increment_and_enforce_llm_calls_limit(self, run_config: RunConfig | None) -> None:
        self.number_of_llm_calls += 1
        if (
            run_config
            and run_config.max_llm_calls > 0
            and self.number_of_llm_calls > run_config.max_llm_calls
        ):
            raise LlmCallsLimitExceededError(run_config.max_llm_calls)


@dataclass
class InvocationContext:
    session_service: BaseSessionService
    invocation_id: str
    agent: BaseAgent
    session: Session
    artifact_service: BaseArtifactService | None = None
    memory_service: BaseMemoryService | None = None
    branch: str | None = None
    user_content: Content | None = None
    end_invocation: bool = False
    live_request_queue: LiveRequestQueue | None = None
    run_config: RunConfig = field(default_factory=RunConfig)
    _cost_manager: _InvocationCostManager = field(default_factory=_InvocationCostManager)

    @property
    def app_name(self) -> str:
        return self.session.app_name

    @property
    def user_id(self) -> str:
        return self.session.user_id

    @property
    def llm_call_count(self) -> int:
        return self._cost_manager.number_of_llm_calls

    def increment_llm_call_count(self) -> None:
        """Count one model call; raises once the invocation budget is spent."""
        self._cost_manager.increment_and_enforce_llm_calls_limit(self.run_config)

    def create_child_context(self, agent: BaseAgent, branch: str | None = None) -> InvocationContext:
        """Fork for ``agent``: same session and counter, new agent and branch."""
        if branch is None:
            branch = f"{self.branch}.{agent.name}" if self.branch else agent.name
        return dataclasses.replace(self, agent=agent, branch=branch)
