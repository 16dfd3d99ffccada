"""Hand control to another agent in the tree."""

from __future__ import annotations

from .function_tool import FunctionTool
from .tool_context import ToolContext


def transfer_to_agent(agent_name: str, tool_context: ToolContext) -> None:
    """Transfer the question to another agent."""
    tool_context.actions.transfer_to_agent = agent_name


transfer_to_agent_tool = FunctionTool(transfer_to_agent)
