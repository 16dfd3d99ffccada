"""Template substitution of ``{var}`` placeholders against session state."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from ..errors import ServiceNotConfiguredError
from ..sessions.state import State

if TYPE_CHECKING:
    from ..agents.readonly_context import ReadonlyContext

_PLACEHOLDER = re.compile(r"{[^{}]*}")
_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_PREFIXES = (State.APP_PREFIX, State.USER_PREFIX, State.TEMP_PREFIX)
_MISSING = object()


def is_valid_state_name(name: str) -> bool:
    parts = name.split(":")
    if len(parts) == 1:
        return bool(_IDENTIFIER.match(name))
    if len(parts) == 2 and f"{parts[0]}:" in _PREFIXES:
        return bool(_IDENTIFIER.match(parts[1]))
    return False


def _split_path(path: str) -> list[str]:
    """``a.b['c'][0]`` -> ``['a', 'b', 'c', '0']``."""
    return [p for p in re.split(r"\.|\[['\"]?|['\"]?\]", path) if p]


def _lookup(state: Any, path: str) -> Any:
    current = state
    for part in _split_path(path):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, (list, tuple)) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            current = getattr(current, part, _MISSING)
        if current is _MISSING or current is None:
            return current
    return current


def _format(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return str(value)


async def inject_session_state(template: str, readonly_context: ReadonlyContext) -> str:
    """Replace ``{name}`` with state values.

    ``{name?}`` is optional and renders empty when missing; ``{artifact.f}``
    inlines the text of artifact ``f``. Placeholders that are not valid state
    names are left untouched. A missing required name raises ``KeyError``.
    """
    ctx = readonly_context.invocation_context
    pieces: list[str] = []
    last_end = 0
    for match in _PLACEHOLDER.finditer(template):
        pieces.append(template[last_end:match.start()])
        pieces.append(await _replace(match.group(0), ctx))
        last_end = match.end()
    pieces.append(template[last_end:])
    return "".join(pieces)


async def _replace(placeholder: str, ctx: Any) -> str:
    var_name = placeholder.strip("{}").strip()
    optional = var_name.endswith("?")
    if optional:
        var_name = var_name[:-1]

    if var_name.startswith("artifact."):
        filename = var_name[len("artifact."):]
        if ctx.artifact_service is None:
            raise ServiceNotConfiguredError("Artifact service")
        artifact = await ctx.artifact_service.load_artifact(
            app_name=ctx.app_name,
            user_id=ctx.user_id,
            session_id=ctx.session.id,
            filename=filename,
        )
        if artifact is None:
            if optional:
                return ""
            raise KeyError(f"Artifact {filename} not found.")
        return artifact.text or ""

    root = re.split(r"[.\[]", var_name, maxsplit=1)[0]
    if not is_valid_state_name(root):
        return placeholder

    value = _lookup(ctx.session.state, var_name)
    if value is _MISSING:
        if optional:
            return ""
        raise KeyError(f"Context variable not found: `{var_name}`.")
    return _format(value)
