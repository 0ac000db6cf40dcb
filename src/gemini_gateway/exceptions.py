"""
Exception classes for the gateway.

Every error raised while handling a request carries the HTTP status the
error boundary should answer with, so transformers and handlers can fail
with a typed error and never build responses themselves.
"""

from __future__ import annotations

from typing import Any

from gemini_gateway.constants import (
    HTTP_401_UNAUTHORIZED_MESSAGE,
    HTTP_404_NOT_FOUND_MESSAGE,
    METHOD_NOT_ALLOWED_MESSAGE,
)


class GatewayError(Exception):
    """Base exception class for all gateway errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            status_code: HTTP status the error boundary answers with
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code or 500


class UnauthorizedError(GatewayError):
    """Raised when the caller does not present the master key."""

    def __init__(
        self,
        message: str = HTTP_401_UNAUTHORIZED_MESSAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details, status_code=401)


class MethodNotAllowedError(GatewayError):
    """Raised when a known endpoint is called with the wrong verb."""

    def __init__(
        self,
        message: str = METHOD_NOT_ALLOWED_MESSAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details, status_code=400)


class InvalidInputError(GatewayError):
    """Raised when an inbound payload cannot be translated."""

    def __init__(
        self, message: str = "Invalid input", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, details, status_code=400)


class NotFoundError(GatewayError):
    """Raised when no endpoint matches the request path."""

    def __init__(
        self,
        message: str = HTTP_404_NOT_FOUND_MESSAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details, status_code=404)


class UpstreamFetchError(GatewayError):
    """Raised when an outbound call fails or cannot be made.

    The status mirrors the upstream answer when there is one; an unreachable
    relay maps to 502.
    """

    def __init__(
        self,
        message: str = "Upstream fetch failed",
        details: dict[str, Any] | None = None,
        *,
        status_code: int = 502,
    ) -> None:
        super().__init__(message, details, status_code=status_code)


class ConfigurationError(GatewayError):
    """Raised when a required secret or address is not configured."""

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details, status_code=500)
