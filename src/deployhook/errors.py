"""
Deploy Hook Errors
==================

Exception types shared by the deploy hook service.

Startup errors (``ConfigurationError``) are fatal and end the process.
Request-time errors (``WebhookDecodeError``) are answered with a client
error status and never escape the request.

Usage:
    from src.deployhook.errors import ConfigurationError

    raise ConfigurationError("Config file not found", path="config.json")
"""

from typing import Optional, Dict, Any


class DeployHookError(Exception):
    """Base error for the deploy hook service."""

    def __init__(
        self,
        message: str,
        error_code: str = "DEPLOYHOOK_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class ConfigurationError(DeployHookError):
    """Configuration file is missing, unreadable or invalid."""

    def __init__(self, message: str = "Invalid configuration", **details):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )


class WebhookDecodeError(DeployHookError):
    """Inbound webhook body could not be decoded."""

    status_code = 400

    def __init__(self, message: str = "Malformed webhook payload", **details):
        super().__init__(
            message=message,
            error_code="WEBHOOK_DECODE_ERROR",
            details=details,
        )
