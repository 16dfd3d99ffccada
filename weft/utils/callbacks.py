"""Callback normalisation: one callable or an ordered list, first result wins."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from typing import Any, TypeVar, Union

T = TypeVar("T")

CallbackOrList = Union[Callable[..., Any], Sequence[Callable[..., Any]], None]


def canonical_callbacks(callback: CallbackOrList) -> list[Callable[..., Any]]:
    if callback is None:
        return []
    if callable(callback):
        return [callback]
    return list(callback)


async def resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def first_result(
    callbacks: list[Callable[..., Any]],
    *args: Any,
    accept: Callable[[Any], bool] = lambda r: r is not None,
) -> Any:
    """Run callbacks in order; return the first accepted result, else ``None``."""
    for callback in callbacks:
        result = await resolve(callback(*args))
        if accept(result):
            return result
    return None
