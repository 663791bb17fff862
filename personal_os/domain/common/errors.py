from __future__ import annotations

from typing import Any, Sequence


class DomainError(Exception):
    """Base class for errors the UI can show to the user as-is."""


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class StorageError(DomainError):
    """A write to the storage collaborator failed."""


class PartialFailureError(DomainError):
    """
    A multi-step operation was only partly applied.

    `applied` holds whatever was written before the failing step, so the caller
    can show it (or clean it up) instead of assuming nothing happened.
    """

    def __init__(self, message: str, applied: Sequence[Any] = (), cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.applied = list(applied)
        self.cause = cause
