"""
Error taxonomy for the encounter engine.

Every failure raised by the engine is a ``TrackerError``. The HTTP layer maps
the concrete subclass to a status code; the engine itself never suppresses or
retries an error.

Each error carries:
  - ``message``: human-readable description, shown to the caller as-is
  - ``details``: extra structured context for logging
  - ``is_retryable``: whether repeating the same call may succeed
  - ``error_code``: short, stable identifier for programmatic handling
"""

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    """Base class for all encounter engine errors."""

    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        is_retryable: bool | None = None,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.is_retryable = is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "is_retryable": self.is_retryable,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class NotFoundError(TrackerError):
    """An encounter or participant id does not exist."""


class UnauthorizedError(TrackerError):
    """The caller does not own the encounter."""


class InvalidArgumentError(TrackerError):
    """Input failed validation or references the wrong encounter."""


class MissingArgumentError(InvalidArgumentError):
    """A required argument was absent or blank."""


class InvalidStateError(TrackerError):
    """A lifecycle precondition was violated."""


class StorageError(TrackerError):
    """The persistence layer failed."""


class ConflictError(TrackerError):
    """The record changed between read and write; the caller may retry."""

    DEFAULT_RETRYABLE = True
