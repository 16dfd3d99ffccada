"""Content types exchanged with the model backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Blob:
    mime_type: str
    data: bytes = b""


@dataclass
class FunctionCall:
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass
class FunctionResponse:
    name: str
    response: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass
class ExecutableCode:
    code: str
    language: str = "PYTHON"


@dataclass
class CodeExecutionResult:
    outcome: str  # "OUTCOME_OK" | "OUTCOME_FAILED"
    output: str = ""


@dataclass
class Part:
    text: str | None = None
    thought: bool = False
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    inline_data: Blob | None = None
    executable_code: ExecutableCode | None = None
    code_execution_result: CodeExecutionResult | None = None

    @classmethod
    def from_text(cls, text: str) -> Part:
        return cls(text=text)

    @classmethod
    def from_function_call(cls, name: str, args: dict[str, Any] | None = None, id: str | None = None) -> Part:
        return cls(function_call=FunctionCall(name=name, args=args or {}, id=id))

    @classmethod
    def from_function_response(cls, name: str, response: dict[str, Any], id: str | None = None) -> Part:
        return cls(function_response=FunctionResponse(name=name, response=response, id=id))

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> Part:
        return cls(inline_data=Blob(mime_type=mime_type, data=data))

    def is_empty(self) -> bool:
        return not (
            self.text
            or self.function_call
            or self.function_response
            or self.inline_data
            or self.executable_code
            or self.code_execution_result
        )


@dataclass
class Content:
    role: str | None = None
    parts: list[Part] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str, role: str = "user") -> Content:
        return cls(role=role, parts=[Part(text=text)])

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if p.text and not p.thought)


MODEL_ROLE = "model"
USER_ROLE = "user"
