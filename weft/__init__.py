"""
weft - a runtime for trees of LLM-backed agents
================================================

An agent tree runs against an append-only session log. Every step is an
``Event``; state changes ride on events as deltas and are committed by the
session service, so replaying the log rebuilds the state.

## Where to find things

- **Agents** (`weft.agents`): `LlmAgent`, `SequentialAgent`, `ParallelAgent`,
  `LoopAgent`, `GraphAgent`.
- **Tools** (`weft.tools`): `FunctionTool` wraps plain functions; built-ins
  for transfer, loop exit and memory lookup.
- **Runners** (`weft.runners`): `Runner` / `InMemoryRunner` drive a turn and
  persist its events; `rewind` and sliding-window compaction live here too.
- **Models** (`weft.models`): `BaseLlm`, the `LlmRegistry`, and `MockLlm` for
  scripted tests.

## Quick start

```python
from weft import InMemoryRunner, LlmAgent
from weft.models import MockLlm
from weft.types import Content

agent = LlmAgent("helper", model=MockLlm(["Hi there."]), instruction="Be brief.")
runner = InMemoryRunner(agent, app_name="demo")
```
"""

from .agents import (
    Agent,
    BaseAgent,
    CallbackContext,
    GraphAgent,
    GraphEdge,
    GraphNode,
    InvocationContext,
    LiveRequestQueue,
    LlmAgent,
    LoopAgent,
    ParallelAgent,
    ReadonlyContext,
    RunConfig,
    SequentialAgent,
    StreamingMode,
)
from .tools import BaseTool, FunctionTool, LongRunningFunctionTool, ToolContext
from .events import Event, EventActions
from .runners import CompactionConfig, InMemoryRunner, LlmEventSummarizer, Runner
from .sessions import InMemorySessionService, Session, State
from .errors import FatalAgentError, LlmCallsLimitExceededError, WeftError

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "BaseAgent",
    "BaseTool",
    "CallbackContext",
    "CompactionConfig",
    "Event",
    "EventActions",
    "FatalAgentError",
    "FunctionTool",
    "GraphAgent",
    "GraphEdge",
    "GraphNode",
    "InMemoryRunner",
    "InMemorySessionService",
    "InvocationContext",
    "LiveRequestQueue",
    "LlmAgent",
    "LlmCallsLimitExceededError",
    "LlmEventSummarizer",
    "LongRunningFunctionTool",
    "LoopAgent",
    "ParallelAgent",
    "ReadonlyContext",
    "RunConfig",
    "Runner",
    "SequentialAgent",
    "Session",
    "State",
    "StreamingMode",
    "ToolContext",
    "WeftError",
]
