"""Mutation envelope attached to every event."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..types import Content

if TYPE_CHECKING:
    from ..auth.auth_config import AuthConfig


@dataclass
class EventCompaction:
    start_timestamp: float
    end_timestamp: float
    compacted_content: Content


@dataclass
class EventActions:
    skip_summarization: bool | None = None
    state_delta: dict[str, Any] = field(default_factory=dict)
    artifact_delta: dict[str, int] = field(default_factory=dict)
    transfer_to_agent: str | None = None
    escalate: bool | None = None
    requested_auth_configs: dict[str, AuthConfig] = field(default_factory=dict)
    compaction: EventCompaction | None = None
    rewind_before_invocation_id: str | None = None

    def merge(self, other: EventActions) -> None:
        """Fold ``other`` into this envelope, later values winning."""
        if other.skip_summarization:
            self.skip_summarization = True
        self.state_delta.update(other.state_delta)
        self.artifact_delta.update(other.artifact_delta)
        if other.transfer_to_agent:
            self.transfer_to_agent = other.transfer_to_agent
        if other.escalate:
            self.escalate = True
        self.requested_auth_configs.update(other.requested_auth_configs)
