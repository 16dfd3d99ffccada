"""Run model-written code under RestrictedPython in a child process.

The code is compiled with ``compile_restricted`` and executed with the
restricted builtins, a whitelisted ``__import__`` and the standard guards.
Each execution gets a fresh process, so a runaway loop is killed once
``timeout`` elapses and nothing leaks into the host interpreter.
"""

from __future__ import annotations

import asyncio
import builtins
import io
import logging
import multiprocessing
import operator
from queue import Empty as QueueEmpty
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator
from RestrictedPython import compile_restricted, safe_globals
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from .base_code_executor import BaseCodeExecutor
from .code_execution_utils import CodeExecutionInput, CodeExecutionResult

if TYPE_CHECKING:
    from ..agents.invocation_context import InvocationContext

logger = logging.getLogger(__name__)

_EXTRA_BUILTINS = (
    "all", "any", "dict", "enumerate", "filter", "frozenset", "list",
    "map", "max", "min", "reversed", "set", "sum",
)

_INPLACE_OPERATORS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
}


def _inplacevar(op: str, target: Any, value: Any) -> Any:
    return _INPLACE_OPERATORS[op](target, value)


def _printer_class(stream: io.StringIO) -> type:
    class _Printer:
        def __init__(self, _getattr_=None):
            self._getattr_ = _getattr_

        def _call_print(self, *objects, **kwargs):
            kwargs["file"] = stream
            print(*objects, **kwargs)

    return _Printer


def _restricted_globals(allowed_modules: list[str], stream: io.StringIO) -> dict[str, Any]:
    env: dict[str, Any] = safe_globals.copy()
    restricted_builtins = dict(env["__builtins__"])
    for name in _EXTRA_BUILTINS:
        restricted_builtins[name] = getattr(builtins, name)

    def safe_import(name, globals=None, locals=None, fromlist=(), level=0):
        if name in allowed_modules:
            return __import__(name, globals, locals, fromlist, level)
        raise ImportError(f"Import of '{name}' is not allowed")

    restricted_builtins["__import__"] = safe_import
    env["__builtins__"] = restricted_builtins
    env.update(
        __name__="weft_sandbox",
        __metaclass__=type,
        _print_=_printer_class(stream),
        _getattr_=safer_getattr,
        _getitem_=default_guarded_getitem,
        _getiter_=default_guarded_getiter,
        _write_=full_write_guard,
        _unpack_sequence_=guarded_unpack_sequence,
        _iter_unpack_sequence_=guarded_iter_unpack_sequence,
        _inplacevar_=_inplacevar,
    )
    return env


def _run_restricted_code(
    code: str,
    allowed_modules: list[str],
    result_queue: multiprocessing.Queue,
) -> None:
    """Child-process entry point; always reports through ``result_queue``."""
    stdout = io.StringIO()
    try:
        byte_code = compile_restricted(code, "<sandbox>", "exec")
        exec(byte_code, _restricted_globals(allowed_modules, stdout))
    except Exception as e:
        result_queue.put({"stdout": stdout.getvalue(), "stderr": f"{type(e).__name__}: {e}"})
        return
    result_queue.put({"stdout": stdout.getvalue(), "stderr": ""})


class SandboxedCodeExecutor(BaseCodeExecutor):
    """Executes each code block in a fresh restricted child process.

    Only modules named in ``allowed_modules`` can be imported. Execution is
    not stateful and data files are not pre-explored.
    """

    timeout: float = Field(30.0, gt=0, description="Seconds before the child process is killed")
    allowed_modules: list[str] = Field(
        default_factory=lambda: ["math", "json", "datetime", "re"],
        description="Modules the executed code may import",
    )
    poll_interval: float = Field(0.05, gt=0, description="Seconds between result checks")

    @field_validator("stateful", "optimize_data_file")
    @classmethod
    def _unsupported(cls, value: bool, info) -> bool:
        if value:
            raise ValueError(f"{info.field_name}=True is not supported by SandboxedCodeExecutor")
        return value

    async def execute_code(
        self, invocation_context: InvocationContext, code_execution_input: CodeExecutionInput
    ) -> CodeExecutionResult:
        result_queue: multiprocessing.Queue = multiprocessing.Queue()
        process = multiprocessing.Process(
            target=_run_restricted_code,
            args=(code_execution_input.code, list(self.allowed_modules), result_queue),
            daemon=True,
        )
        process.start()
        try:
            outcome = await self._wait_for_result(process, result_queue)
        finally:
            if process.is_alive():
                process.kill()
            process.join(timeout=1)
            result_queue.close()

        if outcome["stderr"]:
            logger.debug("Sandboxed execution failed: %s", outcome["stderr"])
        return CodeExecutionResult(stdout=outcome["stdout"], stderr=outcome["stderr"])

    async def _wait_for_result(
        self, process: multiprocessing.Process, result_queue: multiprocessing.Queue
    ) -> dict[str, str]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while loop.time() < deadline:
            try:
                return result_queue.get_nowait()
            except QueueEmpty:
                pass
            if not process.is_alive():
                try:
                    return result_queue.get_nowait()
                except QueueEmpty:
                    return {"stdout": "", "stderr": "Process terminated without result"}
            await asyncio.sleep(self.poll_interval)
        return {"stdout": "", "stderr": f"Execution timed out after {self.timeout} seconds"}
