"""Delegate planning to the model's native thinking feature."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base_planner import BasePlanner

if TYPE_CHECKING:
    from ..agents.callback_context import CallbackContext
    from ..agents.readonly_context import ReadonlyContext
    from ..models.llm_request import LlmRequest
    from ..types import Part


class BuiltInPlanner(BasePlanner):
    def __init__(self, thinking_config: dict[str, Any]) -> None:
        self.thinking_config = thinking_config

    def apply_thinking_config(self, llm_request: LlmRequest) -> None:
        llm_request.config.thinking_config = dict(self.thinking_config)

    def build_planning_instruction(
        self, readonly_context: ReadonlyContext, llm_request: LlmRequest
    ) -> str | None:
        return None

    def process_planning_response(
        self, callback_context: CallbackContext, response_parts: list[Part]
    ) -> list[Part] | None:
        return None
