"""Code executor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from .code_execution_utils import CodeExecutionInput, CodeExecutionResult

if TYPE_CHECKING:
    from ..agents.invocation_context import InvocationContext


class BaseCodeExecutor(BaseModel, ABC):
    """Runs code blocks the model writes.

    A stateful executor keeps one execution id (the session id) across calls.
    After ``error_retry_attempts`` consecutive failures within an invocation,
    further code in that invocation is not executed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    optimize_data_file: bool = Field(False, description="Pre-explore CSV inputs")
    stateful: bool = Field(False, description="Keep variables between executions")
    error_retry_attempts: int = Field(2, description="Failures tolerated per invocation")
    code_block_delimiters: list[tuple[str, str]] = Field(
        default_factory=lambda: [("```tool_code\n", "\n```"), ("```python\n", "\n```")],
        description="Delimiters marking executable code in model text",
    )
    execution_result_delimiters: tuple[str, str] = Field(
        ("```tool_output\n", "\n```"), description="Delimiters wrapped around results"
    )

    @abstractmethod
    async def execute_code(
        self, invocation_context: InvocationContext, code_execution_input: CodeExecutionInput
    ) -> CodeExecutionResult: ...
