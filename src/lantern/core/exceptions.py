# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Custom exception hierarchy for Lantern.

Provides specific exception types for each failure category of the
bot runtime, so callers can decide between falling back, reconnecting
and terminating the process.
"""

from __future__ import annotations

from typing import Any


class LanternException(Exception):  # noqa: N818
    """Base exception for all Lantern errors.

    All Lantern-specific exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(LanternException):
    """Exception for validation errors.

    Raised when:
    - Input validation fails
    - Required fields are missing
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ConfigException(LanternException):
    """Exception for configuration errors.

    Raised when:
    - A required setting is missing
    - A dotted import path cannot be resolved
    - A setting has an unusable value
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


class NotFoundError(LanternException):
    """Exception for resource not found errors.

    Raised when:
    - The credential document does not exist
    - A stored key does not exist
    """

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


# ============================================================================
# Session bootstrap
# ============================================================================


class InvalidTokenFormat(ValidationException):
    """The configured session token is malformed.

    Fatal to the remote bootstrap path only; the bootstrapper falls back
    to interactive provisioning.
    """

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message, field="session_id")
        if reason:
            self.details["reason"] = reason
        self.reason = reason


class FetchError(LanternException):
    """The remote session blob could not be materialized locally."""


class DownloadError(FetchError):
    """Network, decryption or truncation fault while reading the remote blob."""

    def __init__(self, message: str, code: int | None = None):
        details = {}
        if code is not None:
            details["code"] = code
        super().__init__(message, details)
        self.code = code


class PersistError(FetchError):
    """The downloaded blob could not be written to the credential store."""


class CredentialStoreError(LanternException):
    """Local credential read/write failure.

    Fatal: the process cannot run without a usable credential store.
    """

    def __init__(self, message: str, path: str | None = None):
        details = {}
        if path:
            details["path"] = path
        super().__init__(message, details)
        self.path = path


# ============================================================================
# Connection lifecycle
# ============================================================================


class StartupError(LanternException):
    """A fault before the first connection completed; terminates the process."""


class TransportCloseTerminal(LanternException):
    """The account was logged out or deauthorized.

    Automatic reconnection halts; an operator must re-bootstrap.
    """

    def __init__(self, message: str, status_code: int | None = None):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.status_code = status_code


class HandlerFailure(LanternException):
    """An external handler raised while processing an inbound event.

    Only used to carry structured context into the log; never propagated
    to the supervisor.
    """

    def __init__(self, handler: str, event: str, cause: BaseException):
        super().__init__(
            f"Handler {handler} failed on {event}: {cause}",
            {"handler": handler, "event": event, "cause": type(cause).__name__},
        )
        self.handler = handler
        self.event = event
        self.__cause__ = cause
