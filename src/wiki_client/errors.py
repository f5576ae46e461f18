"""Typed exception hierarchy for Feishu wiki client errors.

This module defines all custom exceptions used by the wiki client library.
All exceptions inherit from SyncError so callers can catch any application
level failure, and carry the context needed for clear error messages.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all wiki-mirror errors.

    Use this to catch any application-level error from the mirror tool.
    """
    pass


class ValidationError(SyncError):
    """Raised when a user-supplied URL or token is malformed."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"Invalid input '{value}': {reason}")
        self.value = value
        self.reason = reason


class QuotaWaitCancelled(SyncError):
    """Raised when a rate limiter wait is aborted by cancellation."""

    def __init__(self, units: int = 1):
        super().__init__(f"Cancelled while waiting for {units} rate limit unit(s)")
        self.units = units


class WikiError(SyncError):
    """Base exception for all remote wiki store errors."""
    pass


class InvalidCredentialsError(WikiError):
    """Raised when app credentials are missing, invalid or rejected."""

    def __init__(self, app_id: str, endpoint: str):
        super().__init__(
            f"App credentials are invalid (app_id: {app_id}, endpoint: {endpoint})"
        )
        self.app_id = app_id
        self.endpoint = endpoint


class NodeNotFoundError(WikiError):
    """Raised when a requested wiki node or document does not exist."""

    def __init__(self, token: str):
        super().__init__(f"Node or document {token} not found")
        self.token = token


class APIUnreachableError(WikiError):
    """Raised when the Feishu Open API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(WikiError):
    """Raised when an API call fails after retries or returns an error code."""

    def __init__(self, message: str = "Feishu API failure (after 3 retries)"):
        super().__init__(message)


class PermissionDeniedError(WikiError):
    """Raised when the app lacks the scope needed for an operation.

    Never retried. The message names the capability grant the app needs.
    """

    def __init__(self, operation: str, scope: Optional[str] = None):
        message = f"Permission denied (403) during {operation}"
        if scope:
            message += f": grant the app the '{scope}' permission"
        super().__init__(message)
        self.operation = operation
        self.scope = scope
