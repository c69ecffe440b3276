from __future__ import annotations

import pytest

from tracker.core.errors import NoActiveUserError, ValidationError
from tracker.domain.models import DEFAULT_ADMIN, Role, User
from tracker.repositories.json_storage import MemoryStorage
from tracker.repositories.state import UserStateContainer
from tracker.repositories.user_repository import UserRepository
from tracker.services.auth_service import CREDENTIALS_KEY, LocalAuthProvider

from conftest import ADMIN_PASSWORD


def _repo(storage):
    state = UserStateContainer(storage)
    return UserRepository(state, LocalAuthProvider(storage, state, ADMIN_PASSWORD))


@pytest.fixture()
def users(storage):
    return _repo(storage)


def test_fresh_store_is_seeded_with_active_admin(users, storage):
    assert users.get_active() == DEFAULT_ADMIN
    assert users.query_all() == [DEFAULT_ADMIN]
    assert DEFAULT_ADMIN.id in storage.get(CREDENTIALS_KEY)


def test_get_active_without_session_fails(storage):
    storage.set("user-repository", {"users": [DEFAULT_ADMIN.to_document()], "activeUserID": None})
    users = _repo(storage)
    with pytest.raises(NoActiveUserError):
        users.get_active()


def test_query_by_id_missing_returns_none(users):
    assert users.query_by_id("ghost") is None
    assert users.query_by_id(DEFAULT_ADMIN.id) == DEFAULT_ADMIN


def test_default_admin_can_log_in(users):
    assert users.login_user("Admin", "Admin", ADMIN_PASSWORD) is True
    assert users.login_user("Admin", "Admin", "wrong") is False


def test_register_and_login_makes_new_user_active(users):
    calls = []
    users.attach_event_hook("active-user-changed", calls.append)

    assert users.register_and_login_user("Ada", "Lovelace", "pw123", "developer") is True

    active = users.get_active()
    assert (active.first_name, active.last_name, active.role) == ("Ada", "Lovelace", Role.DEVELOPER)
    assert calls == [active]
    assert users.query_by_id(active.id) == active


def test_login_switches_active_user_and_fires_hooks(users):
    users.register_and_login_user("Ada", "Lovelace", "pw123", "developer")
    order = []
    users.attach_event_hook("active-user-changed", lambda u: order.append(("first", u.first_name)))
    users.attach_event_hook("active-user-changed", lambda u: order.append(("second", u.first_name)))

    assert users.login_user("Admin", "Admin", ADMIN_PASSWORD)

    assert users.get_active() == DEFAULT_ADMIN
    assert order == [("first", "Admin"), ("second", "Admin")]


def test_failed_login_keeps_current_session(users):
    assert users.login_user("Nobody", "Here", "pw") is False
    assert users.get_active() == DEFAULT_ADMIN


def test_duplicate_registration_is_refused(users):
    assert users.register_and_login_user("Ada", "Lovelace", "pw123", "developer")
    assert users.register_and_login_user("Ada", "Lovelace", "other", "admin") is False
    assert len(users.query_all()) == 2


def test_invalid_role_is_rejected_before_anything_is_stored(users):
    with pytest.raises(ValidationError):
        users.register_and_login_user("Eve", "X", "pw", "root")
    assert len(users.query_all()) == 1


def test_active_user_and_credentials_survive_reload():
    storage = MemoryStorage()
    _repo(storage).register_and_login_user("Grace", "Hopper", "cobol", "devops")

    reloaded = _repo(storage)
    assert reloaded.get_active().first_name == "Grace"
    assert reloaded.login_user("Grace", "Hopper", "cobol") is True


def test_set_active_user_adds_unknown_user(users):
    remote = User(id="r1", first_name="Remote", last_name="User", role="guest")
    users.set_active_user(remote)
    assert users.get_active() == remote
    assert users.query_by_id("r1") == remote
