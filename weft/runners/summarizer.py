"""Summarisers turning a window of events into one compaction event."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from ..events import Event, EventActions, EventCompaction
from ..models.base_llm import BaseLlm
from ..models.llm_request import LlmRequest
from ..types import Content
from ..utils.ids import new_invocation_id

logger = logging.getLogger(__name__)

DEFAULT_SUMMARIZATION_PROMPT = """You are a helpful assistant tasked with summarizing a conversation history.
Please provide a concise summary of the following events, capturing the key information and context.
Focus on the main topics discussed, important decisions made, and any action items or results.

Events to summarize:
{events}

Provide your summary in a clear, concise format."""


@runtime_checkable
class EventsSummarizer(Protocol):
    async def maybe_summarize_events(self, events: list[Event]) -> Event | None: ...


class LlmEventSummarizer:
    """Asks a model for a summary of the window.

    The returned event is authored ``user`` and carries the summary in
    ``actions.compaction``; it has no content of its own.
    """

    def __init__(self, llm: BaseLlm, prompt: str | None = None) -> None:
        self.llm = llm
        self.prompt = prompt or DEFAULT_SUMMARIZATION_PROMPT

    async def maybe_summarize_events(self, events: list[Event]) -> Event | None:
        if not events:
            return None

        request = LlmRequest(
            model=self.llm.model,
            contents=[Content.from_text(self.prompt.replace("{events}", self._format_events(events)))],
        )
        chunks: list[str] = []
        async for response in self.llm.generate_content_async(request):
            if response.partial:
                continue
            if response.content:
                chunks.append(response.content.text)
        summary = "".join(chunks).strip()
        if not summary:
            logger.debug("Summariser returned no text for %d events", len(events))
            return None

        return Event(
            invocation_id=new_invocation_id(),
            author="user",
            actions=EventActions(
                compaction=EventCompaction(
                    start_timestamp=events[0].timestamp,
                    end_timestamp=events[-1].timestamp,
                    compacted_content=Content.from_text(summary, role="model"),
                )
            ),
        )

    @staticmethod
    def _format_events(events: list[Event]) -> str:
        lines = []
        for event in events:
            if not event.content:
                continue
            stamp = datetime.fromtimestamp(event.timestamp, tz=timezone.utc).isoformat()
            for part in event.content.parts:
                if part.text:
                    lines.append(f"[{stamp}] {event.author}: {part.text}")
                elif part.function_call:
                    call = part.function_call
                    lines.append(
                        f"[{stamp}] {event.author}: Called tool '{call.name}' with args {json.dumps(call.args)}"
                    )
                elif part.function_response:
                    resp = part.function_response
                    lines.append(
                        f"[{stamp}] {event.author}: Tool '{resp.name}' returned: "
                        f"{json.dumps(resp.response, default=str)}"
                    )
        return "\n".join(lines)
