"""Capability protocols that processors check instead of concrete agent classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pydantic import BaseModel

    from ..code_executors.base_code_executor import BaseCodeExecutor
    from ..models.base_llm import BaseLlm
    from ..models.llm_request import GenerateContentConfig
    from ..planners.base_planner import BasePlanner
    from ..tools.base_tool import BaseTool
    from .base_agent import BaseAgent
    from .readonly_context import ReadonlyContext


@runtime_checkable
class HasModel(Protocol):
    generate_content_config: GenerateContentConfig | None

    @property
    def canonical_model(self) -> BaseLlm: ...

    @property
    def canonical_before_model_callbacks(self) -> list[Callable[..., Any]]: ...

    @property
    def canonical_after_model_callbacks(self) -> list[Callable[..., Any]]: ...


@runtime_checkable
class HasTools(Protocol):
    async def canonical_tools(self, ctx: ReadonlyContext | None = None) -> list[BaseTool]: ...

    @property
    def canonical_before_tool_callbacks(self) -> list[Callable[..., Any]]: ...

    @property
    def canonical_after_tool_callbacks(self) -> list[Callable[..., Any]]: ...


@runtime_checkable
class HasInstructions(Protocol):
    instruction: Any
    global_instruction: Any

    async def canonical_instruction(self, ctx: ReadonlyContext) -> tuple[str, bool]: ...

    async def canonical_global_instruction(self, ctx: ReadonlyContext) -> tuple[str, bool]: ...


@runtime_checkable
class HasOutputSchema(Protocol):
    output_schema: type[BaseModel] | None


@runtime_checkable
class HasContentsPolicy(Protocol):
    include_contents: Literal["default", "none"]


@runtime_checkable
class HasPlanner(Protocol):
    planner: BasePlanner | None


@runtime_checkable
class HasCodeExecutor(Protocol):
    code_executor: BaseCodeExecutor | None


@runtime_checkable
class HasTransferPolicy(Protocol):
    disallow_transfer_to_parent: bool
    disallow_transfer_to_peers: bool
    parent_agent: BaseAgent | None
    sub_agents: list[BaseAgent]
