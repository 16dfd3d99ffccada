"""Helpers for code blocks embedded in model output."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..types import CodeExecutionResult as CodeExecutionResultPart
from ..types import Content, ExecutableCode, Part


@dataclass
class File:
    name: str
    content: str  # base64
    mime_type: str = "text/plain"


@dataclass
class CodeExecutionInput:
    code: str
    input_files: list[File] = field(default_factory=list)
    execution_id: str | None = None


@dataclass
class CodeExecutionResult:
    stdout: str = ""
    stderr: str = ""
    output_files: list[File] = field(default_factory=list)


def extract_code_and_truncate_content(
    content: Content, code_block_delimiters: list[tuple[str, str]]
) -> str | None:
    """Return the first code block and cut ``content`` down to it.

    Everything after the first block is dropped; the block itself becomes an
    executable-code part.
    """
    if not content or not content.parts:
        return None

    for idx, part in enumerate(content.parts):
        if part.executable_code:
            content.parts = content.parts[: idx + 1]
            return part.executable_code.code

    text_parts = [p for p in content.parts if p.text]
    if not text_parts:
        return None
    response_text = "\n".join(p.text for p in text_parts)

    leading = "|".join(re.escape(d[0]) for d in code_block_delimiters)
    trailing = "|".join(re.escape(d[1]) for d in code_block_delimiters)
    match = re.search(
        rf"(?P<prefix>.*?)({leading})(?P<code>.*?)({trailing})(?P<suffix>.*?)$",
        response_text,
        re.DOTALL,
    )
    if not match or not match.group("code"):
        return None

    code = match.group("code")
    parts = []
    if match.group("prefix"):
        parts.append(Part(text=match.group("prefix")))
    parts.append(build_executable_code_part(code))
    content.parts = parts
    return code


def build_executable_code_part(code: str) -> Part:
    return Part(executable_code=ExecutableCode(code=code, language="PYTHON"))


def build_code_execution_result_part(result: CodeExecutionResult) -> Part:
    if result.stderr:
        return Part(
            code_execution_result=CodeExecutionResultPart(outcome="OUTCOME_FAILED", output=result.stderr)
        )
    sections = []
    if result.stdout or not result.output_files:
        sections.append(f"Code execution result:\n{result.stdout}\n")
    if result.output_files:
        sections.append("Saved artifacts:\n" + ",".join(f"`{f.name}`" for f in result.output_files))
    return Part(
        code_execution_result=CodeExecutionResultPart(outcome="OUTCOME_OK", output="\n\n".join(sections))
    )


def convert_code_execution_parts(
    content: Content,
    code_block_delimiter: tuple[str, str],
    execution_result_delimiters: tuple[str, str],
) -> None:
    """Render code parts as delimited text for backends without native support."""
    if not content.parts:
        return
    last = content.parts[-1]
    if last.executable_code:
        content.parts[-1] = Part(
            text=code_block_delimiter[0] + last.executable_code.code + code_block_delimiter[1]
        )
    elif len(content.parts) == 1 and last.code_execution_result:
        content.parts[-1] = Part(
            text=execution_result_delimiters[0]
            + last.code_execution_result.output
            + execution_result_delimiters[1]
        )
        content.role = "user"
