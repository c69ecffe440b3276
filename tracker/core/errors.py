"""Error hierarchy raised by repositories and services."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for tracker exceptions."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TrackerError):
    """A lookup by name or identifier failed where the caller requires existence."""


class DuplicateNameError(TrackerError):
    """A project name is already taken in the name-keyed storage."""


class NoActiveUserError(TrackerError):
    pass


class NoActiveProjectError(TrackerError):
    pass


class ValidationError(TrackerError):
    """An enumerated field received a value outside its closed set."""


class PermissionDeniedError(TrackerError):
    """The active user's role does not allow the requested mutation."""


class PersistenceError(TrackerError):
    """The durable write of a snapshot failed; the in-memory change was rolled back."""


class BackendError(PersistenceError):
    """The remote backend could not be reached or answered with an unexpected status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
