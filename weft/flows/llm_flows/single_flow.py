"""Flow for agents that never hand off control."""

from __future__ import annotations

import logging

from . import (
    auth_preprocessor,
    basic,
    code_execution,
    contents,
    identity,
    instructions,
    nl_planning,
    output_schema,
    shared_memory,
)
from .base_llm_flow import BaseLlmFlow

logger = logging.getLogger(__name__)


class SingleFlow(BaseLlmFlow):
    """Model calls and tool execution without agent transfer.

    Request stages run in order: basic config, credentials, instructions,
    identity, history, shared memory, planning, code execution.
    """

    def __init__(self) -> None:
        super().__init__()
        self.request_processors += [
            basic.request_processor,
            auth_preprocessor.request_processor,
            instructions.request_processor,
            identity.request_processor,
            contents.request_processor,
            shared_memory.request_processor,
            nl_planning.request_processor,
            code_execution.request_processor,
        ]
        self.response_processors += [
            nl_planning.response_processor,
            output_schema.response_processor,
            code_execution.response_processor,
        ]
        logger.debug("SingleFlow initialized with %d request processors", len(self.request_processors))
