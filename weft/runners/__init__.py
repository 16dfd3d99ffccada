"""Runners and history compaction."""

from .compaction import CompactionConfig, run_compaction_for_sliding_window
from .in_memory_runner import InMemoryRunner
from .runner import Runner
from .summarizer import EventsSummarizer, LlmEventSummarizer

__all__ = [
    "CompactionConfig",
    "EventsSummarizer",
    "InMemoryRunner",
    "LlmEventSummarizer",
    "Runner",
    "run_compaction_for_sliding_window",
]
