"""Signal the enclosing loop to stop."""

from __future__ import annotations

from .function_tool import FunctionTool
from .tool_context import ToolContext


def exit_loop(tool_context: ToolContext) -> None:
    """Exits the loop.

    Call this function only when you are instructed to do so.
    """
    tool_context.actions.escalate = True
    tool_context.actions.skip_summarization = True


exit_loop_tool = FunctionTool(exit_loop)
