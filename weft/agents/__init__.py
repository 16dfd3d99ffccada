"""Agents and the contexts they run in.

Import order matters here: the context modules load before ``llm_agent``,
which pulls in ``weft.tools``, whose ``ToolContext`` extends
``CallbackContext``.
"""

from .readonly_context import ReadonlyContext
from .callback_context import CallbackContext
from .invocation_context import InvocationContext
from .run_config import RunConfig, StreamingMode
from .live_request_queue import LiveRequest, LiveRequestQueue
from .base_agent import BaseAgent
from .capabilities import (
    HasCodeExecutor,
    HasContentsPolicy,
    HasInstructions,
    HasModel,
    HasOutputSchema,
    HasPlanner,
    HasTools,
    HasTransferPolicy,
)
from .llm_agent import Agent, LlmAgent
from .sequential_agent import SequentialAgent
from .parallel_agent import ParallelAgent
from .loop_agent import LoopAgent
from .graph_agent import GraphAgent, GraphEdge, GraphNode, NodeResult

__all__ = [
    "Agent",
    "BaseAgent",
    "CallbackContext",
    "GraphAgent",
    "GraphEdge",
    "GraphNode",
    "HasCodeExecutor",
    "HasContentsPolicy",
    "HasInstructions",
    "HasModel",
    "HasOutputSchema",
    "HasPlanner",
    "HasTools",
    "HasTransferPolicy",
    "InvocationContext",
    "LiveRequest",
    "LiveRequestQueue",
    "LlmAgent",
    "LoopAgent",
    "NodeResult",
    "ParallelAgent",
    "ReadonlyContext",
    "RunConfig",
    "SequentialAgent",
    "StreamingMode",
]
