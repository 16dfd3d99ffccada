"""Structured error hierarchy for the weft runtime."""

from __future__ import annotations


class WeftError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause

    @classmethod
    def wrap(cls, err: Exception) -> WeftError:
        if isinstance(err, WeftError):
            return err
        return WeftError("UNKNOWN", str(err), err)


class FatalAgentError(WeftError):
    """Hard fault: never turned into an error event and never retried."""


class LlmCallsLimitExceededError(FatalAgentError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            "LLM_CALLS_LIMIT_EXCEEDED", f"Max number of llm calls limit of `{limit}` exceeded"
        )
        self.limit = limit


class AgentConfigError(FatalAgentError, ValueError):
    def __init__(self, message: str) -> None:
        super().__init__("AGENT_CONFIG", message)


class AgentNotImplementedError(FatalAgentError, NotImplementedError):
    def __init__(self, message: str) -> None:
        super().__init__("NOT_IMPLEMENTED", message)


class InvariantViolationError(FatalAgentError):
    def __init__(self, message: str) -> None:
        super().__init__("INVARIANT_VIOLATION", message)


class AgentNotFoundError(FatalAgentError):
    def __init__(self, agent_name: str, message: str | None = None) -> None:
        super().__init__("AGENT_NOT_FOUND", message or f"Agent {agent_name} not found in the agent tree.")
        self.agent_name = agent_name


class ServiceNotConfiguredError(FatalAgentError):
    def __init__(self, service: str) -> None:
        super().__init__("SERVICE_NOT_CONFIGURED", f"{service} is not initialized.")
        self.service = service


class ToolError(WeftError):
    def __init__(
        self, code: str, tool_name: str, message: str, cause: Exception | None = None
    ) -> None:
        super().__init__(code, message, cause)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(
            "TOOL_NOT_FOUND", tool_name, f"Function {tool_name} is not found in the tools_dict."
        )


class SessionNotFoundError(WeftError):
    def __init__(self, session_id: str) -> None:
        super().__init__("SESSION_NOT_FOUND", f"Session not found: {session_id}")
        self.session_id = session_id


class QueueClosedError(WeftError):
    def __init__(self) -> None:
        super().__init__("QUEUE_CLOSED", "Cannot send to a closed LiveRequestQueue")
