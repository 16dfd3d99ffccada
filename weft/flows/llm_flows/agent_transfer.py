"""Offer ``transfer_to_agent`` and describe the reachable agents."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...agents.capabilities import HasTransferPolicy
from ...tools.tool_context import ToolContext
from ...tools.transfer_to_agent_tool import transfer_to_agent_tool
from .base_processor import BaseLlmRequestMutator

if TYPE_CHECKING:
    from ...agents.base_agent import BaseAgent
    from ...agents.invocation_context import InvocationContext
    from ...models.llm_request import LlmRequest


def _build_target_agent_info(agent: BaseAgent) -> str:
    return f"\nAgent name: {agent.name}\nAgent description: {agent.description}\n"


def build_transfer_instructions(agent: BaseAgent, targets: list[BaseAgent]) -> str:
    name = transfer_to_agent_tool.name
    text = (
        "\nYou have a list of other agents to transfer to:\n"
        + "\n".join(_build_target_agent_info(t) for t in targets)
        + "\nIf you are the best to answer the question according to your description, you\n"
        "can answer it.\n\n"
        "If another agent is better for answering the question according to its\n"
        f"description, call `{name}` function to transfer the\n"
        "question to that agent. When transferring, do not generate any text other than\n"
        "the function call.\n"
    )
    if (
        agent.parent_agent is not None
        and isinstance(agent, HasTransferPolicy)
        and not agent.disallow_transfer_to_parent
    ):
        text += (
            f"\nYour parent agent is {agent.parent_agent.name}. If neither the other agents nor\n"
            "you are best for answering the question according to the descriptions, transfer\n"
            "to your parent agent.\n"
        )
    return text


def get_transfer_targets(agent: BaseAgent) -> list[BaseAgent]:
    targets = list(agent.sub_agents)
    parent = agent.parent_agent
    if parent is None or not isinstance(agent, HasTransferPolicy):
        return targets
    if not agent.disallow_transfer_to_parent:
        targets.append(parent)
    if not agent.disallow_transfer_to_peers:
        targets.extend(peer for peer in parent.sub_agents if peer.name != agent.name)
    return targets


class AgentTransferLlmRequestProcessor(BaseLlmRequestMutator):
    async def process(self, ctx: InvocationContext, llm_request: LlmRequest) -> None:
        agent = ctx.agent
        if not isinstance(agent, HasTransferPolicy):
            return
        targets = get_transfer_targets(agent)
        if not targets:
            return
        llm_request.append_instructions([build_transfer_instructions(agent, targets)])
        await transfer_to_agent_tool.process_llm_request(
            tool_context=ToolContext(ctx), llm_request=llm_request
        )


request_processor = AgentTransferLlmRequestProcessor()
