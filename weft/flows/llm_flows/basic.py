"""Model and config setup."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from ...agents.capabilities import HasModel, HasOutputSchema, HasTools, HasTransferPolicy
from ...agents.readonly_context import ReadonlyContext
from ...models.llm_request import GenerateContentConfig
from .base_processor import BaseLlmRequestMutator

if TYPE_CHECKING:
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest

logger = logging.getLogger(__name__)


class BasicLlmRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        agent = ctx.agent
        if not isinstance(agent, HasModel):
            return
        llm_request.model = agent.canonical_model.model
        llm_request.config = (
            copy.deepcopy(agent.generate_content_config)
            if agent.generate_content_config
            else GenerateContentConfig()
        )
        if ctx.run_config.response_modalities:
            llm_request.config.response_modalities = list(ctx.run_config.response_modalities)

        if isinstance(agent, HasOutputSchema) and agent.output_schema is not None:
            has_tools = isinstance(agent, HasTools) and bool(
                await agent.canonical_tools(ReadonlyContext(ctx))
            )
            has_transfers = (
                isinstance(agent, HasTransferPolicy)
                and bool(agent.sub_agents)
                and not (agent.disallow_transfer_to_parent and agent.disallow_transfer_to_peers)
            )
            if not has_tools and not has_transfers:
                llm_request.set_output_schema(agent.output_schema)
            else:
                logger.debug(
                    "Skipping request-level output schema for agent %s because tools/transfers "
                    "are present; the response is validated instead.",
                    agent.name,
                )


request_processor = BasicLlmRequestProcessor()
