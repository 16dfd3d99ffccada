"""Code execution."""

from .base_code_executor import BaseCodeExecutor
from .code_execution_utils import CodeExecutionInput, CodeExecutionResult, File
from .code_executor_context import CodeExecutorContext
from .sandboxed_code_executor import SandboxedCodeExecutor

__all__ = [
    "BaseCodeExecutor",
    "CodeExecutionInput",
    "CodeExecutionResult",
    "CodeExecutorContext",
    "File",
    "SandboxedCodeExecutor",
]
