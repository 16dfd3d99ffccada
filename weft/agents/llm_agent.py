"""Model-backed leaf agent."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, AsyncGenerator, Callable, Literal, Union

from pydantic import BaseModel

from ..errors import FatalAgentError
from ..events import Event
from ..models.base_llm import BaseLlm
from ..models.llm_request import GenerateContentConfig
from ..models.registry import LlmRegistry
from ..tools.base_tool import BaseTool
from ..tools.function_tool import FunctionTool
from ..types import Content, Part
from ..utils.callbacks import CallbackOrList, canonical_callbacks, resolve
from .base_agent import BaseAgent
from .invocation_context import InvocationContext
from .readonly_context import ReadonlyContext

if TYPE_CHECKING:
    from ..code_executors.base_code_executor import BaseCodeExecutor
    from ..flows.llm_flows.base_llm_flow import BaseLlmFlow
    from ..planners.base_planner import BasePlanner

logger = logging.getLogger(__name__)

InstructionProvider = Callable[[ReadonlyContext], Any]
ToolUnion = Union[BaseTool, Callable[..., Any]]


class LlmAgent(BaseAgent):
    """Agent driven by a language model, its tools and its sub-agents."""

    def __init__(
        self,
        name: str,
        *,
        model: str | BaseLlm = "",
        instruction: str | InstructionProvider = "",
        global_instruction: str | InstructionProvider = "",
        description: str = "",
        sub_agents: list[BaseAgent] | None = None,
        tools: list[ToolUnion] | None = None,
        generate_content_config: GenerateContentConfig | None = None,
        disallow_transfer_to_parent: bool = False,
        disallow_transfer_to_peers: bool = False,
        include_contents: Literal["default", "none"] = "default",
        output_schema: type[BaseModel] | None = None,
        output_key: str | None = None,
        planner: BasePlanner | None = None,
        code_executor: BaseCodeExecutor | None = None,
        before_agent_callback: CallbackOrList = None,
        after_agent_callback: CallbackOrList = None,
        before_model_callback: CallbackOrList = None,
        after_model_callback: CallbackOrList = None,
        before_tool_callback: CallbackOrList = None,
        after_tool_callback: CallbackOrList = None,
    ) -> None:
        super().__init__(
            name,
            description=description,
            sub_agents=sub_agents,
            before_agent_callback=before_agent_callback,
            after_agent_callback=after_agent_callback,
        )
        self.model = model
        self.instruction = instruction
        self.global_instruction = global_instruction
        self.tools: list[ToolUnion] = list(tools or [])
        self.generate_content_config = generate_content_config
        self.disallow_transfer_to_parent = disallow_transfer_to_parent
        self.disallow_transfer_to_peers = disallow_transfer_to_peers
        self.include_contents = include_contents
        self.output_schema = output_schema
        self.output_key = output_key
        self.planner = planner
        self.code_executor = code_executor
        self.before_model_callback = before_model_callback
        self.after_model_callback = after_model_callback
        self.before_tool_callback = before_tool_callback
        self.after_tool_callback = after_tool_callback
        self._resolved_model: BaseLlm | None = None

    # ---- canonical accessors ----

    @property
    def canonical_model(self) -> BaseLlm:
        if isinstance(self.model, BaseLlm):
            return self.model
        if self.model:
            if self._resolved_model is None:
                self._resolved_model = LlmRegistry.new_llm(self.model)
            return self._resolved_model
        ancestor = self.parent_agent
        while ancestor is not None:
            if isinstance(ancestor, LlmAgent):
                return ancestor.canonical_model
            ancestor = ancestor.parent_agent
        raise ValueError(f"No model found for {self.name}.")

    async def canonical_instruction(self, ctx: ReadonlyContext) -> tuple[str, bool]:
        """Return the instruction text and whether to skip state injection."""
        if isinstance(self.instruction, str):
            return self.instruction, False
        return await resolve(self.instruction(ctx)), True

    async def canonical_global_instruction(self, ctx: ReadonlyContext) -> tuple[str, bool]:
        if isinstance(self.global_instruction, str):
            return self.global_instruction, False
        return await resolve(self.global_instruction(ctx)), True

    async def canonical_tools(self, ctx: ReadonlyContext | None = None) -> list[BaseTool]:
        return [t if isinstance(t, BaseTool) else FunctionTool(t) for t in self.tools]

    @property
    def canonical_before_model_callbacks(self):
        return canonical_callbacks(self.before_model_callback)

    @property
    def canonical_after_model_callbacks(self):
        return canonical_callbacks(self.after_model_callback)

    @property
    def canonical_before_tool_callbacks(self):
        return canonical_callbacks(self.before_tool_callback)

    @property
    def canonical_after_tool_callbacks(self):
        return canonical_callbacks(self.after_tool_callback)

    @property
    def _llm_flow(self) -> BaseLlmFlow:
        from ..flows.llm_flows.auto_flow import AutoFlow
        from ..flows.llm_flows.single_flow import SingleFlow

        if self.disallow_transfer_to_parent and self.disallow_transfer_to_peers and not self.sub_agents:
            return SingleFlow()
        return AutoFlow()

    # ---- run ----

    async def _run_async_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        async for event in self._guarded(ctx, self._llm_flow.run_async(ctx)):
            yield event

    async def _run_live_impl(self, ctx: InvocationContext) -> AsyncGenerator[Event, None]:
        async for event in self._guarded(ctx, self._llm_flow.run_live(ctx)):
            yield event

    async def _guarded(
        self, ctx: InvocationContext, stream: AsyncGenerator[Event, None]
    ) -> AsyncGenerator[Event, None]:
        try:
            async for event in stream:
                self._maybe_save_output_to_state(event)
                yield event
        except FatalAgentError:
            raise
        except Exception as e:
            logger.exception("Agent %s failed", self.name)
            yield Event(
                invocation_id=ctx.invocation_id,
                author=self.name,
                branch=ctx.branch,
                content=Content(role="model", parts=[Part(text=f"Error: {e}")]),
                error_code="AGENT_EXECUTION_ERROR",
                error_message=str(e),
            )

    def _maybe_save_output_to_state(self, event: Event) -> None:
        if event.author != self.name:
            logger.debug(
                "Skipping output save for agent %s: event authored by %s", self.name, event.author
            )
            return
        if not self.output_key or not event.is_final_response() or event.error_code:
            return
        if not event.content or not event.content.parts:
            return
        result: Any = "".join(p.text for p in event.content.parts if p.text and not p.thought)
        if self.output_schema is not None:
            if not result.strip():
                return
            result = self.output_schema.model_validate_json(result).model_dump(exclude_none=True)
        event.actions.state_delta[self.output_key] = result


Agent = LlmAgent
