"""Let the model query long-term memory."""

from __future__ import annotations

from typing import Any

from .function_tool import FunctionTool
from .tool_context import ToolContext


async def load_memory(query: str, tool_context: ToolContext) -> dict[str, Any]:
    """Loads the memory for the current user matching the query."""
    response = await tool_context.search_memory(query)
    return {
        "memories": [
            {"author": m.author, "timestamp": m.timestamp, "text": m.content.text}
            for m in response.memories
        ]
    }


load_memory_tool = FunctionTool(load_memory)
