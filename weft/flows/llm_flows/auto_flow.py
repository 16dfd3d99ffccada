"""Flow that also lets the model transfer to other agents."""

from __future__ import annotations

from . import agent_transfer
from .single_flow import SingleFlow


class AutoFlow(SingleFlow):
    """SingleFlow plus the ``transfer_to_agent`` tool and its instructions.

    Reachable targets are sub-agents, the parent unless disallowed, and
    peers unless disallowed.
    """

    def __init__(self) -> None:
        super().__init__()
        self.request_processors.append(agent_transfer.request_processor)
