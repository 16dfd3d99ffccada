"""Wrap plain Python callables as tools."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable, get_type_hints

from pydantic import create_model

from ..models.llm_request import FunctionDeclaration
from ..utils.callbacks import resolve
from .base_tool import BaseTool

if TYPE_CHECKING:
    from .tool_context import ToolContext

_CONTEXT_PARAM = "tool_context"


class FunctionTool(BaseTool):
    """Exposes ``func`` to the model.

    The parameter schema is derived from the signature; a parameter named
    ``tool_context`` is injected at call time and hidden from the model.

    Example:
        def get_weather(city: str) -> dict:
            '''Look up the weather for a city.'''
            return {"city": city, "temp": 21}

        tool = FunctionTool(get_weather)
    """

    def __init__(
        self,
        func: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
        is_long_running: bool = False,
    ) -> None:
        doc = inspect.getdoc(func) or ""
        super().__init__(
            name=name or func.__name__,
            description=description or doc or f"Call {func.__name__}",
            is_long_running=is_long_running,
        )
        self.func = func
        self._signature = inspect.signature(func)
        self._parameters_schema = self._build_parameters_schema()

    def _build_parameters_schema(self) -> dict[str, Any]:
        try:
            hints = get_type_hints(self.func)
        except (NameError, TypeError):
            hints = {}
        fields: dict[str, Any] = {}
        for param_name, param in self._signature.parameters.items():
            if param_name in ("self", "cls", _CONTEXT_PARAM):
                continue
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            annotation = hints.get(param_name, Any)
            default = param.default if param.default is not param.empty else ...
            fields[param_name] = (annotation, default)
        schema = create_model(f"{self.name}_args", **fields).model_json_schema()
        schema.pop("title", None)
        return schema

    def get_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(
            name=self.name, description=self.description, parameters=self._parameters_schema
        )

    def _missing_mandatory_args(self, args: dict[str, Any]) -> list[str]:
        return [
            name
            for name, param in self._signature.parameters.items()
            if name not in (_CONTEXT_PARAM, "self", "cls")
            and param.kind not in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
            and param.default is param.empty
            and name not in args
        ]

    async def run_async(self, *, args: dict[str, Any], tool_context: ToolContext) -> Any:
        call_args = dict(args)
        if _CONTEXT_PARAM in self._signature.parameters:
            call_args[_CONTEXT_PARAM] = tool_context

        missing = self._missing_mandatory_args(call_args)
        if missing:
            return {
                "error": (
                    f"Invoking `{self.name}()` failed as the following mandatory input "
                    f"parameters are not present: {', '.join(missing)}. "
                    "You could retry calling this tool, but it is IMPORTANT for you to provide "
                    "all the mandatory parameters."
                )
            }
        return await resolve(self.func(**call_args))


class LongRunningFunctionTool(FunctionTool):
    """A function tool whose result may arrive in a later turn."""

    def __init__(self, func: Callable[..., Any], name: str | None = None, description: str | None = None) -> None:
        super().__init__(func, name=name, description=description, is_long_running=True)
