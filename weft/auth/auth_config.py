"""Credential request/response envelope."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel, Field

REQUEST_CREDENTIAL_FUNCTION_CALL_NAME = "weft_request_credential"


class AuthConfig(BaseModel):
    """What a tool needs to proceed, and later what the client supplied."""

    auth_scheme: str = Field(..., description="Scheme name, e.g. oauth2 or api_key")
    raw_auth_credential: dict[str, Any] | None = Field(None, description="Client id/secret etc.")
    exchanged_auth_credential: dict[str, Any] | None = Field(
        None, description="Credential filled in by the client"
    )
    credential_key: str | None = Field(None, description="Session key the credential is stored under")

    def get_credential_key(self) -> str:
        if self.credential_key:
            return self.credential_key
        raw = json.dumps(self.raw_auth_credential or {}, sort_keys=True)
        digest = hashlib.sha256(f"{self.auth_scheme}:{raw}".encode()).hexdigest()[:16]
        return f"weft_{self.auth_scheme}_{digest}"


class AuthToolArguments(BaseModel):
    function_call_id: str
    auth_config: AuthConfig
