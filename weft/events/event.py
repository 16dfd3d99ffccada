"""One entry of the append-only session log."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from ..models.llm_response import LlmResponse
from ..types import FunctionCall, FunctionResponse
from ..utils.ids import new_event_id
from .event_actions import EventActions


@dataclass
class Event(LlmResponse):
    author: str = ""
    invocation_id: str = ""
    actions: EventActions = field(default_factory=EventActions)
    long_running_tool_ids: set[str] | None = None
    branch: str | None = None
    id: str = ""
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_event_id()

    @staticmethod
    def new_id() -> str:
        return new_event_id()

    def get_function_calls(self) -> list[FunctionCall]:
        if not self.content:
            return []
        return [p.function_call for p in self.content.parts if p.function_call]

    def get_function_responses(self) -> list[FunctionResponse]:
        if not self.content:
            return []
        return [p.function_response for p in self.content.parts if p.function_response]

    def has_trailing_code_execution_result(self) -> bool:
        if not self.content or not self.content.parts:
            return False
        return self.content.parts[-1].code_execution_result is not None

    def is_final_response(self) -> bool:
        if self.actions.skip_summarization or self.long_running_tool_ids:
            return True
        return (
            not self.get_function_calls()
            and not self.get_function_responses()
            and not self.partial
            and not self.has_trailing_code_execution_result()
        )
