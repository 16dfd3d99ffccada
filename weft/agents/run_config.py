"""Per-run configuration."""

from __future__ import annotations

import logging
import sys
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class StreamingMode(StrEnum):
    NONE = "none"
    SSE = "sse"
    BIDI = "bidi"


class RunConfig(BaseModel):
    """Knobs for one runner invocation."""

    streaming_mode: StreamingMode = Field(StreamingMode.NONE, description="Model streaming mode")
    max_llm_calls: int = Field(
        500, description="Model calls allowed per invocation; <= 0 means unlimited"
    )
    save_input_blobs_as_artifacts: bool = Field(
        False, description="Store inline blobs of the user message as artifacts"
    )
    response_modalities: list[str] | None = Field(None, description="Requested output modalities")

    @field_validator("max_llm_calls")
    @classmethod
    def _validate_max_llm_calls(cls, value: int) -> int:
        if value == sys.maxsize:
            raise ValueError(f"max_llm_calls should be less than {sys.maxsize}.")
        if value <= 0:
            logger.warning(
                "max_llm_calls is less than or equal to 0. This will result in no enforcement "
                "on total number of llm calls that will be made for a run."
            )
        return value
