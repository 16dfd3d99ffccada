"""Global and local instructions, with session-state substitution."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from ...agents.capabilities import HasInstructions, HasOutputSchema
from ...agents.readonly_context import ReadonlyContext
from ...utils.instructions import inject_session_state
from .base_processor import BaseLlmRequestMutator

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest

_SCHEMA_INSTRUCTION = (
    "You must respond with application/json that validates against this JSON Schema "
    "(do NOT wrap the output in markdown or code fences):"
)
_FINAL_JSON_INSTRUCTION = (
    "IMPORTANT: After any tool calls, function calls, or agent transfers have completed, "
    "produce ONE final assistant message whose entire content is ONLY the JSON object that "
    "conforms to the schema provided above. Do NOT include any explanatory text, markdown, "
    "or additional messages. Do NOT wrap the JSON in code fences. If you cannot produce "
    'valid JSON that matches the schema, return a JSON object with an "error" field '
    "describing the problem."
)


class InstructionsLlmRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        agent = ctx.agent
        if not isinstance(agent, HasInstructions):
            return
        readonly = ReadonlyContext(ctx)

        root = agent.root_agent
        if isinstance(root, HasInstructions) and root.global_instruction:
            text, bypass = await root.canonical_global_instruction(readonly)
            if not bypass:
                text = await inject_session_state(text, readonly)
            llm_request.append_instructions([text])

        if agent.instruction:
            text, bypass = await agent.canonical_instruction(readonly)
            if not bypass:
                text = await inject_session_state(text, readonly)
            llm_request.append_instructions([text])

        if isinstance(agent, HasOutputSchema) and agent.output_schema is not None:
            schema = agent.output_schema.model_json_schema()
            llm_request.append_instructions([_SCHEMA_INSTRUCTION, json.dumps(schema, indent=2)])
            llm_request.append_instructions([_FINAL_JSON_INSTRUCTION])


request_processor = InstructionsLlmRequestProcessor()
