# workout_core/errors.py
# =============================================================================
# Exception taxonomy shared by the session engine, reconciler and stores.
# =============================================================================

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError


class WorkoutCoreError(Exception):
    """Base class for every error raised by workout_core."""


class ValidationError(WorkoutCoreError, ValueError):
    """Malformed caller input: bad weekday, non-list refs, bad set field, ..."""


class NotFoundError(WorkoutCoreError, LookupError):
    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class SessionStateError(WorkoutCoreError, RuntimeError):
    """An operation was called with no live session, or on one already running."""


class StorageError(WorkoutCoreError):
    """Raised by persistence collaborators. The core never catches these."""

    def __init__(self, message: str, status: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data if data is not None else {}


class AuthenticationError(StorageError):
    """The backend rejected the shared-secret credentials (HTTP 401)."""


def from_pydantic(exc: PydanticValidationError) -> ValidationError:
    """Flatten a pydantic error into one readable ValidationError."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return ValidationError("; ".join(parts) or str(exc))
