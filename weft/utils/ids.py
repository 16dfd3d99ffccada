"""Injectable id generation for every id the runtime mints."""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Protocol, runtime_checkable

CLIENT_FUNCTION_CALL_ID_PREFIX = "weft-"


@runtime_checkable
class IdGenerator(Protocol):
    def event_id(self) -> str: ...
    def invocation_id(self) -> str: ...
    def function_call_id(self) -> str: ...


class UuidIdGenerator:
    """Random ids for production use."""

    def event_id(self) -> str:
        return uuid.uuid4().hex[:8]

    def invocation_id(self) -> str:
        return f"e-{uuid.uuid4()}"

    def function_call_id(self) -> str:
        return f"{CLIENT_FUNCTION_CALL_ID_PREFIX}{uuid.uuid4()}"


class SequentialIdGenerator:
    """Deterministic counters, handy in tests."""

    def __init__(self) -> None:
        self._events = itertools.count(1)
        self._invocations = itertools.count(1)
        self._calls = itertools.count(1)

    def event_id(self) -> str:
        return f"{next(self._events):08x}"

    def invocation_id(self) -> str:
        return f"e-{next(self._invocations)}"

    def function_call_id(self) -> str:
        return f"{CLIENT_FUNCTION_CALL_ID_PREFIX}{next(self._calls)}"


_default = UuidIdGenerator()
_current: ContextVar[IdGenerator] = ContextVar("_current_id_generator", default=_default)


def get_id_generator() -> IdGenerator:
    return _current.get()


@contextmanager
def use_id_generator(generator: IdGenerator) -> Generator[IdGenerator, None, None]:
    token = _current.set(generator)
    try:
        yield generator
    finally:
        _current.reset(token)


def new_event_id() -> str:
    return _current.get().event_id()


def new_invocation_id() -> str:
    return _current.get().invocation_id()


def new_function_call_id() -> str:
    return _current.get().function_call_id()
