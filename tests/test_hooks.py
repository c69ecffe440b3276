from __future__ import annotations

import pytest

from tracker.core.errors import ValidationError
from tracker.domain.hooks import EventHookRegistry, EventKind


def test_hooks_run_in_registration_order():
    registry = EventHookRegistry([EventKind.ACTIVE_PROJECT_CHANGED])
    calls = []
    registry.attach("active-project-changed", lambda p: calls.append(("first", p)))
    registry.attach({"type": "active-project-changed"}, lambda p: calls.append(("second", p)))
    registry.attach(EventKind.ACTIVE_PROJECT_CHANGED, lambda p: calls.append(("third", p)))

    registry.dispatch(EventKind.ACTIVE_PROJECT_CHANGED, "proj")

    assert calls == [("first", "proj"), ("second", "proj"), ("third", "proj")]


def test_same_hook_attached_twice_runs_twice():
    registry = EventHookRegistry([EventKind.ACTIVE_USER_CHANGED])
    calls = []
    hook = calls.append
    registry.attach("active-user-changed", hook)
    registry.attach("active-user-changed", hook)
    registry.dispatch(EventKind.ACTIVE_USER_CHANGED, "u")
    assert calls == ["u", "u"]


def test_unsubscribe_detaches_only_that_hook():
    registry = EventHookRegistry([EventKind.FEATURE_ADDED])
    calls = []
    sub = registry.attach("feature-added", lambda f: calls.append("a"))
    registry.attach("feature-added", lambda f: calls.append("b"))

    sub.unsubscribe()
    sub.unsubscribe()
    registry.dispatch(EventKind.FEATURE_ADDED, None)

    assert calls == ["b"]
    assert registry.count("feature-added") == 1


def test_hook_unsubscribing_during_dispatch_does_not_skip_others():
    registry = EventHookRegistry([EventKind.FEATURE_UPDATED])
    calls = []
    holder = {}

    def once(payload):
        calls.append("once")
        holder["sub"].unsubscribe()

    holder["sub"] = registry.attach("feature-updated", once)
    registry.attach("feature-updated", lambda p: calls.append("always"))

    registry.dispatch(EventKind.FEATURE_UPDATED, None)
    registry.dispatch(EventKind.FEATURE_UPDATED, None)

    assert calls == ["once", "always", "always"]


def test_unknown_or_foreign_selectors_are_rejected():
    registry = EventHookRegistry([EventKind.ACTIVE_PROJECT_CHANGED])
    with pytest.raises(ValidationError):
        registry.attach("project-renamed", print)
    with pytest.raises(ValidationError):
        registry.attach("active-user-changed", print)
