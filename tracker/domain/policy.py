"""Authorisation rules consumed by the use cases before touching a repository."""
from __future__ import annotations

from tracker.core.errors import PermissionDeniedError
from tracker.domain.models import User


def can_mutate(user: User | None) -> bool:
    """Guests (and anonymous callers) may read but never create or change projects/features."""
    return user is not None and not user.is_guest


def ensure_can_mutate(user: User | None, action: str) -> None:
    if not can_mutate(user):
        who = user.full_name if user else "anonymous"
        raise PermissionDeniedError(f"User '{who}' is not allowed to {action}")
