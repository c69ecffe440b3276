"""Event hook registry shared by the repositories."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Generic, Iterable, TypeVar

from tracker.core.errors import ValidationError

log = logging.getLogger(__name__)

T = TypeVar("T")
Hook = Callable[[T], Any]


class EventKind(str, Enum):
    ACTIVE_PROJECT_CHANGED = "active-project-changed"
    ACTIVE_USER_CHANGED = "active-user-changed"
    FEATURE_ADDED = "feature-added"
    FEATURE_UPDATED = "feature-updated"


def selector_kind(selector: Any) -> EventKind:
    """
    Normalise an event selector.

    Accepts an ``EventKind``, its string value, or a mapping with a ``type``
    key (``{"type": "active-project-changed"}``).
    """
    if isinstance(selector, EventKind):
        return selector
    if isinstance(selector, dict):
        selector = selector.get("type")
    try:
        return EventKind(str(selector))
    except ValueError:
        raise ValidationError(f"Unknown event selector '{selector}'") from None


class Subscription:
    """Handle returned by ``attach``; ``unsubscribe`` detaches the hook."""

    def __init__(self, registry: "EventHookRegistry", kind: EventKind, hook: Hook):
        self._registry = registry
        self.kind = kind
        self.hook = hook
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self._registry._detach(self)
        self.active = False


class EventHookRegistry(Generic[T]):
    """Ordered callbacks per event kind, restricted to the kinds a repository supports."""

    def __init__(self, kinds: Iterable[EventKind]):
        self._hooks: dict[EventKind, list[Subscription]] = {kind: [] for kind in kinds}

    def attach(self, selector: Any, hook: Hook) -> Subscription:
        kind = selector_kind(selector)
        if kind not in self._hooks:
            raise ValidationError(f"Event '{kind.value}' is not emitted here")
        subscription = Subscription(self, kind, hook)
        self._hooks[kind].append(subscription)
        return subscription

    def _detach(self, subscription: Subscription) -> None:
        hooks = self._hooks.get(subscription.kind, [])
        if subscription in hooks:
            hooks.remove(subscription)

    def count(self, selector: Any) -> int:
        return len(self._hooks.get(selector_kind(selector), []))

    def dispatch(self, kind: EventKind, payload: T) -> None:
        """Invoke every hook for ``kind`` in registration order."""
        # copy: a hook may unsubscribe itself (or another) while we iterate
        for subscription in list(self._hooks.get(kind, [])):
            if subscription.active:
                subscription.hook(payload)
        log.debug("dispatched %s to %d hook(s)", kind.value, len(self._hooks.get(kind, [])))
