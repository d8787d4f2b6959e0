"""Typed failures raised by the ordering core."""

from __future__ import annotations


class TableOrderError(Exception):
    """Base failure carrying the collaborator's error shape."""

    def __init__(self, message: str, status_code: int | None = None, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class ValidationError(TableOrderError):
    """Caller input violates a precondition; never retried automatically."""


class NotFoundError(TableOrderError):
    """Referenced table, order or payment does not exist."""


class TransientError(TableOrderError):
    """Network, timeout or server failure; the same stage may be retried."""


class StateError(TableOrderError):
    """Operation invoked in the wrong lifecycle position."""


# Client errors that clear up on their own when the request is repeated.
RETRYABLE_CLIENT_STATUSES = frozenset({408, 425, 429})


def error_for_status(status_code: int, message: str, error: str | None = None) -> TableOrderError:
    """Map an HTTP status code onto the failure taxonomy."""
    if status_code == 404:
        return NotFoundError(message, status_code, error)
    if 400 <= status_code < 500 and status_code not in RETRYABLE_CLIENT_STATUSES:
        return ValidationError(message, status_code, error)
    return TransientError(message, status_code, error)
