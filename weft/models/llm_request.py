"""Model request types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from ..types import Content

if TYPE_CHECKING:
    from ..tools.base_tool import BaseTool


@dataclass
class FunctionDeclaration:
    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None


@dataclass
class GenerateContentConfig:
    system_instruction: str | None = None
    tools: list[FunctionDeclaration] = field(default_factory=list)
    response_schema: type[BaseModel] | None = None
    response_mime_type: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    temperature: float | None = None
    max_output_tokens: int | None = None
    thinking_config: dict[str, Any] | None = None
    response_modalities: list[str] | None = None


@dataclass
class LlmRequest:
    model: str | None = None
    contents: list[Content] = field(default_factory=list)
    config: GenerateContentConfig = field(default_factory=GenerateContentConfig)
    tools_dict: dict[str, BaseTool] = field(default_factory=dict)

    def append_instructions(self, instructions: list[str]) -> None:
        if not instructions:
            return
        text = "\n\n".join(instructions)
        if self.config.system_instruction:
            self.config.system_instruction += "\n\n" + text
        else:
            self.config.system_instruction = text

    def append_tools(self, tools: list[BaseTool]) -> None:
        known = {d.name for d in self.config.tools}
        for tool in tools:
            declaration = tool.get_declaration()
            if declaration is None or declaration.name in known:
                continue
            known.add(declaration.name)
            self.config.tools.append(declaration)
            self.tools_dict[tool.name] = tool

    def set_output_schema(self, schema: type[BaseModel]) -> None:
        self.config.response_schema = schema
        self.config.response_mime_type = "application/json"

    def dedupe_declarations(self) -> None:
        seen: set[str] = set()
        unique = []
        for declaration in self.config.tools:
            if declaration.name in seen:
                continue
            seen.add(declaration.name)
            unique.append(declaration)
        self.config.tools = unique
