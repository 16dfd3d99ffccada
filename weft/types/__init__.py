"""Content types."""

from .content import (
    MODEL_ROLE,
    USER_ROLE,
    Blob,
    CodeExecutionResult,
    Content,
    ExecutableCode,
    FunctionCall,
    FunctionResponse,
    Part,
)

__all__ = [
    "MODEL_ROLE",
    "USER_ROLE",
    "Blob",
    "CodeExecutionResult",
    "Content",
    "ExecutableCode",
    "FunctionCall",
    "FunctionResponse",
    "Part",
]
