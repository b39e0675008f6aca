"""
Custom exceptions for BrewConsole.

Provides a hierarchy of exceptions covering configuration, storage,
form validation and the normalized failures of the REST API.
"""

from typing import Any, Dict, Optional


class BrewConsoleError(Exception):
    """Base exception for all BrewConsole errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(BrewConsoleError):
    """Raised when there are configuration issues."""
    pass


class StorageError(BrewConsoleError):
    """Persistent session storage is unavailable or unreadable."""
    pass


class FormValidationError(BrewConsoleError):
    """Local form input was rejected before any request was issued."""

    def __init__(self, errors: Dict[str, str], **kwargs):
        message = next(iter(errors.values()), "Invalid form input")
        super().__init__(message, **kwargs)
        self.errors = errors


class AccessDeniedError(BrewConsoleError):
    """The current role may not open the requested view."""
    pass


class ApiError(BrewConsoleError):
    """Base class for normalized REST API failures."""

    default_message = "An error occurred"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None, **kwargs):
        super().__init__(message or self.default_message, **kwargs)
        self.status = status
        # Only a received response can carry a server-provided message
        self.server_message = message if status is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message}


class TransportError(ApiError):
    """Network failure or timeout; no response was received."""

    default_message = "Unable to reach the server"


class AuthenticationError(ApiError):
    """The server rejected the credentials (HTTP 401)."""

    default_message = "Authentication required"


class RequestRejectedError(ApiError):
    """The server rejected the request (HTTP 4xx other than 401)."""
    pass


class ServerError(ApiError):
    """The server failed to handle the request (HTTP 5xx)."""
    pass


class InvalidResponseError(ApiError):
    """The server answered with a payload that could not be parsed."""

    default_message = "Unexpected response from server"


def error_message(error: Optional[BaseException], fallback: str) -> str:
    """Message to show for a failed request: the server's own, else ``fallback``."""
    if isinstance(error, ApiError) and error.server_message:
        return error.server_message
    if isinstance(error, BrewConsoleError) and not isinstance(error, ApiError):
        return error.message
    return fallback
