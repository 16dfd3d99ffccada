"""Sliding-window compaction of session history."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..events import Event
from ..sessions.base_session_service import BaseSessionService
from ..sessions.session import Session

logger = logging.getLogger(__name__)


class CompactionConfig(BaseModel):
    """When to summarise history.

    Once ``compaction_interval`` invocations have finished since the last
    summary, the window from the first of them back ``overlap_size`` older
    invocations through the latest is summarised. Without a summariser the
    runner falls back to one built on the root agent's model.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    summarizer: Any | None = None
    compaction_interval: int = Field(10, ge=1)
    overlap_size: int = Field(2, ge=0)


async def run_compaction_for_sliding_window(
    config: CompactionConfig,
    session: Session,
    session_service: BaseSessionService,
    summarizer: Any,
) -> Event | None:
    if not session.events:
        return None

    last_compacted_end = _last_compacted_end_timestamp(session.events)
    latest_by_invocation = _latest_timestamp_by_invocation(session.events)
    invocation_ids = list(latest_by_invocation)
    new_ids = [inv for inv in invocation_ids if latest_by_invocation[inv] > last_compacted_end]

    if len(new_ids) < config.compaction_interval:
        logger.debug(
            "Not enough new invocations for compaction: need %d, have %d",
            config.compaction_interval,
            len(new_ids),
        )
        return None

    start_idx = max(0, invocation_ids.index(new_ids[0]) - config.overlap_size)
    start_id, end_id = invocation_ids[start_idx], new_ids[-1]
    window = _slice_events(session.events, start_id, end_id)
    if not window:
        return None

    logger.debug("Compacting %d events from %s to %s", len(window), start_id, end_id)
    compaction_event = await summarizer.maybe_summarize_events(window)
    if compaction_event is None:
        return None
    return await session_service.append_event(session, compaction_event)


def _last_compacted_end_timestamp(events: list[Event]) -> float:
    for event in reversed(events):
        if event.actions.compaction:
            return event.actions.compaction.end_timestamp
    return 0.0


def _latest_timestamp_by_invocation(events: list[Event]) -> dict[str, float]:
    latest: dict[str, float] = {}
    for event in events:
        if event.actions.compaction or not event.invocation_id:
            continue
        latest[event.invocation_id] = max(latest.get(event.invocation_id, 0.0), event.timestamp)
    return latest


def _slice_events(events: list[Event], start_id: str, end_id: str) -> list[Event]:
    """Events from the first of ``start_id`` to the last of ``end_id``."""
    first = next((i for i, e in enumerate(events) if e.invocation_id == start_id), None)
    last = next((i for i in range(len(events) - 1, -1, -1) if events[i].invocation_id == end_id), None)
    if first is None or last is None or first > last:
        return []
    return [e for e in events[first : last + 1] if not e.actions.compaction]
