"""Code-executor bookkeeping persisted in session state."""

from __future__ import annotations

import copy
import dataclasses
import time
from typing import Any

from ..sessions.state import State
from .code_execution_utils import File

_CONTEXT_KEY = "_code_execution_context"
_SESSION_ID_KEY = "execution_session_id"
_PROCESSED_FILE_NAMES_KEY = "processed_input_files"
_INPUT_FILE_KEY = "_code_executor_input_files"
_ERROR_COUNT_KEY = "_code_executor_error_counts"
_CODE_EXECUTION_RESULTS_KEY = "_code_execution_results"


class CodeExecutorContext:
    """Reads and writes executor bookkeeping over a fresh state delta.

    Nested values are copied before mutation and written back whole, so the
    committed session state only changes when the owning event is appended.
    """

    def __init__(self, session_state: dict[str, Any]) -> None:
        self._delta: dict[str, Any] = {}
        self._state = State(session_state, self._delta)

    def _read(self, key: str, default: Any) -> Any:
        return copy.deepcopy(self._state.get(key, default))

    def get_state_delta(self) -> dict[str, Any]:
        return copy.deepcopy(self._delta)

    # execution id

    def get_execution_id(self) -> str | None:
        return self._read(_CONTEXT_KEY, {}).get(_SESSION_ID_KEY)

    def set_execution_id(self, session_id: str) -> None:
        context = self._read(_CONTEXT_KEY, {})
        context[_SESSION_ID_KEY] = session_id
        self._state[_CONTEXT_KEY] = context

    # processed files

    def get_processed_file_names(self) -> list[str]:
        return self._read(_CONTEXT_KEY, {}).get(_PROCESSED_FILE_NAMES_KEY, [])

    def add_processed_file_names(self, file_names: list[str]) -> None:
        context = self._read(_CONTEXT_KEY, {})
        context.setdefault(_PROCESSED_FILE_NAMES_KEY, []).extend(file_names)
        self._state[_CONTEXT_KEY] = context

    # input files

    def get_input_files(self) -> list[File]:
        return [File(**f) for f in self._read(_INPUT_FILE_KEY, [])]

    def add_input_files(self, input_files: list[File]) -> None:
        files = self._read(_INPUT_FILE_KEY, [])
        files.extend(dataclasses.asdict(f) for f in input_files)
        self._state[_INPUT_FILE_KEY] = files

    def clear_input_files(self) -> None:
        self._state[_INPUT_FILE_KEY] = []
        context = self._read(_CONTEXT_KEY, {})
        context[_PROCESSED_FILE_NAMES_KEY] = []
        self._state[_CONTEXT_KEY] = context

    # error counts

    def get_error_count(self, invocation_id: str) -> int:
        return self._read(_ERROR_COUNT_KEY, {}).get(invocation_id, 0)

    def increment_error_count(self, invocation_id: str) -> None:
        counts = self._read(_ERROR_COUNT_KEY, {})
        counts[invocation_id] = counts.get(invocation_id, 0) + 1
        self._state[_ERROR_COUNT_KEY] = counts

    def reset_error_count(self, invocation_id: str) -> None:
        counts = self._read(_ERROR_COUNT_KEY, {})
        if invocation_id in counts:
            del counts[invocation_id]
            self._state[_ERROR_COUNT_KEY] = counts

    # results

    def update_code_execution_result(
        self, invocation_id: str, code: str, result_stdout: str, result_stderr: str
    ) -> None:
        results = self._read(_CODE_EXECUTION_RESULTS_KEY, {})
        results.setdefault(invocation_id, []).append(
            {
                "code": code,
                "result_stdout": result_stdout,
                "result_stderr": result_stderr,
                "timestamp": int(time.time()),
            }
        )
        self._state[_CODE_EXECUTION_RESULTS_KEY] = results
