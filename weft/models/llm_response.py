"""Model response types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..types import Content


@dataclass
class UsageMetadata:
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


@dataclass
class LlmResponse:
    content: Content | None = None
    partial: bool | None = None
    turn_complete: bool | None = None
    interrupted: bool | None = None
    error_code: str | None = None
    error_message: str | None = None
    finish_reason: str | None = None
    usage_metadata: UsageMetadata | None = None
    custom_metadata: dict[str, Any] | None = None

    @property
    def text(self) -> str:
        return self.content.text if self.content else ""


RESPONSE_FIELDS = (
    "content",
    "partial",
    "turn_complete",
    "interrupted",
    "error_code",
    "error_message",
    "finish_reason",
    "usage_metadata",
    "custom_metadata",
)
