"""User repository: active session user, lookups, login and registration."""
from __future__ import annotations

import logging
from typing import Any, Protocol

from tracker.core.errors import NoActiveUserError
from tracker.core.utils import new_id
from tracker.domain.hooks import EventHookRegistry, EventKind, Hook, Subscription
from tracker.domain.models import Role, User
from tracker.repositories.state import UserStateContainer

log = logging.getLogger(__name__)


class AuthProvider(Protocol):
    """Where credentials are checked (local hashes or the remote backend)."""

    def authenticate(self, first_name: str, last_name: str, password: str) -> User | None: ...

    def register(self, user: User, password: str) -> bool: ...

    def fetch_user(self, user_id: str) -> User | None: ...


class UserRepository:
    def __init__(self, state: UserStateContainer, auth: AuthProvider) -> None:
        self.state = state
        self.auth = auth
        self.hooks: EventHookRegistry[User] = EventHookRegistry([EventKind.ACTIVE_USER_CHANGED])

    def get_active(self) -> User:
        user = self.state.active()
        if user is None:
            raise NoActiveUserError("No active user")
        return user

    def query_by_id(self, user_id: str) -> User | None:
        return self.state.by_id(user_id) or self.auth.fetch_user(user_id)

    def query_all(self) -> list[User]:
        return self.state.all()

    def set_active_user(self, user: User) -> None:
        def _select(m):
            m.add(user)
            m.set_active(user.id)

        self.state.modify(_select, on_commit=lambda: self._announce(user))

    def _announce(self, user: User) -> None:
        log.info("active user is now %s (%s)", user.full_name, user.id)
        self.hooks.dispatch(EventKind.ACTIVE_USER_CHANGED, user)

    def attach_event_hook(self, selector: Any, hook: Hook) -> Subscription:
        return self.hooks.attach(selector, hook)

    def login_user(self, first_name: str, last_name: str, password: str) -> bool:
        """Check the credentials; the authenticated user becomes the active one."""
        user = self.auth.authenticate(first_name, last_name, password)
        if user is None:
            log.warning("login failed for %s %s", first_name, last_name)
            return False
        self.set_active_user(user)
        return True

    def register_and_login_user(self, first_name: str, last_name: str, password: str,
                                role: Role | str) -> bool:
        user = User(id=new_id(), first_name=first_name, last_name=last_name, role=Role.parse(role))
        if not self.auth.register(user, password):
            log.warning("registration refused for %s", user.full_name)
            return False
        self.state.modify(lambda m: m.add(user))
        log.info("registered %s as %s", user.full_name, user.role.value)
        return self.login_user(first_name, last_name, password)
