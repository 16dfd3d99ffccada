"""Delta-aware state view."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

_MISSING = object()


class State:
    """Read/write view over a committed map plus a pending delta.

    Reads consult the delta first; a ``None`` in the delta means the key was
    deleted. Writes only touch the delta, which belongs to the event that
    will commit them.
    """

    APP_PREFIX = "app:"
    USER_PREFIX = "user:"
    TEMP_PREFIX = "temp:"

    def __init__(self, value: dict[str, Any], delta: dict[str, Any]) -> None:
        self._value = value
        self._delta = delta

    def __getitem__(self, key: str) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self._delta[key] = value

    def __delitem__(self, key: str) -> None:
        if key not in self:
            raise KeyError(key)
        self._delta[key] = None

    def __contains__(self, key: object) -> bool:
        if key in self._delta:
            return self._delta[key] is not None
        return key in self._value

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_dict())

    def __len__(self) -> int:
        return len(self.to_dict())

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._delta:
            value = self._delta[key]
            return default if value is None else value
        return self._value.get(key, default)

    def setdefault(self, key: str, default: Any = None) -> Any:
        if key not in self:
            self[key] = default
        return self[key]

    def update(self, delta: dict[str, Any]) -> None:
        self._delta.update(delta)

    def has_delta(self) -> bool:
        return bool(self._delta)

    def to_dict(self) -> dict[str, Any]:
        merged = dict(self._value)
        for key, value in self._delta.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        return merged


def apply_state_delta(state: dict[str, Any], delta: dict[str, Any]) -> None:
    """Commit ``delta`` into ``state`` in place; ``temp:`` keys never persist."""
    for key, value in delta.items():
        if key.startswith(State.TEMP_PREFIX):
            continue
        if value is None:
            state.pop(key, None)
        else:
            state[key] = value
