"""Tool interface."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ..models.llm_request import FunctionDeclaration, LlmRequest

if TYPE_CHECKING:
    from .tool_context import ToolContext

_TOOL_NAME = re.compile(r"^[a-zA-Z0-9_]+$")


class BaseTool:
    """A callable capability exposed to the model.

    Long-running tools may return ``None`` from ``run_async``; their response
    arrives later as a separate event matched by function-call id.
    """

    def __init__(self, name: str, description: str, is_long_running: bool = False) -> None:
        if not _TOOL_NAME.match(name):
            raise ValueError(
                f"Invalid tool name: {name!r}. Must contain only letters, digits and underscores."
            )
        if not description or len(description) < 3:
            raise ValueError(f"Tool description for {name} must be at least 3 characters.")
        self.name = name
        self.description = description
        self.is_long_running = is_long_running

    def get_declaration(self) -> FunctionDeclaration | None:
        return None

    async def run_async(self, *, args: dict[str, Any], tool_context: ToolContext) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not implement run_async")

    async def process_llm_request(self, *, tool_context: ToolContext, llm_request: LlmRequest) -> None:
        """Expose this tool on the outgoing request."""
        llm_request.append_tools([self])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
