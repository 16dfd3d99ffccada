"""Tools callable by model-backed agents."""

from .base_tool import BaseTool
from .exit_loop_tool import exit_loop, exit_loop_tool
from .function_tool import FunctionTool, LongRunningFunctionTool
from .load_memory_tool import load_memory, load_memory_tool
from .tool_context import ToolContext
from .transfer_to_agent_tool import transfer_to_agent, transfer_to_agent_tool

__all__ = [
    "BaseTool",
    "FunctionTool",
    "LongRunningFunctionTool",
    "ToolContext",
    "exit_loop",
    "exit_loop_tool",
    "load_memory",
    "load_memory_tool",
    "transfer_to_agent",
    "transfer_to_agent_tool",
]
