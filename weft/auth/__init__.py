"""Credential hand-off."""

from .auth_config import REQUEST_CREDENTIAL_FUNCTION_CALL_NAME, AuthConfig, AuthToolArguments

__all__ = ["REQUEST_CREDENTIAL_FUNCTION_CALL_NAME", "AuthConfig", "AuthToolArguments"]
