"""Validate the final response against the agent's output schema."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, AsyncGenerator

from pydantic import ValidationError

from ...agents.capabilities import HasOutputSchema
from ...events import Event
from ...types import Content, Part
from .base_processor import BaseLlmResponseProcessor

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_response import LlmResponse

logger = logging.getLogger(__name__)

_FENCED = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL | re.IGNORECASE)

OUTPUT_SCHEMA_VALIDATION_FAILED = "OUTPUT_SCHEMA_VALIDATION_FAILED"


def strip_code_fences(text: str) -> str:
    match = _FENCED.search(text)
    if match:
        return match.group(1).strip()
    lines = text.splitlines()
    for idx, line in enumerate(lines):
        if line.lstrip().startswith(("{", "[")):
            return "\n".join(lines[idx:]).strip()
    return text.strip()


class OutputSchemaResponseProcessor(BaseLlmResponseProcessor):
    async def run_async(
        self, ctx: InvocationContext, llm_response: LlmResponse
    ) -> AsyncGenerator[Event, None]:
        agent = ctx.agent
        if not isinstance(agent, HasOutputSchema) or agent.output_schema is None:
            return
        if not llm_response.content or not llm_response.content.parts or llm_response.partial:
            return
        if any(p.function_call or p.function_response for p in llm_response.content.parts):
            return
        text = "".join(p.text for p in llm_response.content.parts if p.text and not p.thought)
        if not text.strip():
            return

        try:
            parsed = json.loads(strip_code_fences(text))
            validated = agent.output_schema.model_validate(parsed)
        except (json.JSONDecodeError, ValidationError) as e:
            message = f"Output schema validation failed for agent '{agent.name}': {e}"
            logger.warning(message)
            # The error event below replaces the invalid payload.
            llm_response.content = None
            yield Event(
                invocation_id=ctx.invocation_id,
                author=agent.name,
                branch=ctx.branch,
                content=Content(role="model", parts=[Part(text=f"Error: {message}")]),
                error_code=OUTPUT_SCHEMA_VALIDATION_FAILED,
                error_message=str(e),
            )
            return

        pretty = json.dumps(validated.model_dump(mode="json", exclude_none=True), indent=2)
        thoughts = [p for p in llm_response.content.parts if p.thought]
        llm_response.content.parts = thoughts + [Part(text=pretty)]


response_processor = OutputSchemaResponseProcessor()
