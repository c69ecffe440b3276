"""
Authentication providers used by the user repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from tracker.core.config import get_settings
from tracker.core.security import hash_password, verify_password
from tracker.domain.models import DEFAULT_ADMIN, User
from tracker.repositories.json_storage import KeyValueStorage
from tracker.repositories.remote_backend import RemoteBackend
from tracker.repositories.state import UserStateContainer

log = logging.getLogger(__name__)

CREDENTIALS_KEY = "user-credentials"


@dataclass
class LocalAuthProvider:
    """Argon2 password hashes kept next to the user snapshot, keyed by user id."""

    storage: KeyValueStorage
    users: UserStateContainer
    admin_password: Optional[str] = None

    def __post_init__(self):
        if self.admin_password is None:
            self.admin_password = get_settings().admin_password
        if self.storage.get(CREDENTIALS_KEY) is None:
            self.storage.set(CREDENTIALS_KEY, {DEFAULT_ADMIN.id: hash_password(self.admin_password)})

    def _credentials(self) -> dict:
        creds = self.storage.get(CREDENTIALS_KEY)
        return creds if isinstance(creds, dict) else {}

    def authenticate(self, first_name: str, last_name: str, password: str) -> User | None:
        user = self.users.by_name((first_name or "").strip(), (last_name or "").strip())
        if user is None:
            return None
        if not verify_password(password, self._credentials().get(user.id)):
            return None
        return user

    def register(self, user: User, password: str) -> bool:
        """Names are the login key, so a second user with the same names is refused."""
        if self.users.by_name(user.first_name, user.last_name) is not None:
            return False
        creds = self._credentials()
        creds[user.id] = hash_password(password)
        self.storage.set(CREDENTIALS_KEY, creds)
        return True

    def fetch_user(self, user_id: str) -> User | None:
        return self.users.by_id(user_id)


@dataclass
class RemoteAuthProvider:
    """Delegates credentials and user lookups to the backend service."""

    backend: RemoteBackend

    def authenticate(self, first_name: str, last_name: str, password: str) -> User | None:
        return self.backend.login_user(first_name, last_name, password)

    def register(self, user: User, password: str) -> bool:
        return self.backend.register_user(user, password)

    def fetch_user(self, user_id: str) -> User | None:
        return self.backend.get_user(user_id)
