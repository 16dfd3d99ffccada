"""Event log model."""

from .event import Event
from .event_actions import EventActions, EventCompaction

__all__ = ["Event", "EventActions", "EventCompaction"]
