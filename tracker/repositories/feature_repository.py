"""Feature repository."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from tracker.core.errors import NotFoundError, ValidationError
from tracker.domain.hooks import EventHookRegistry, EventKind, Hook, Subscription
from tracker.domain.models import Feature, FeaturePriority, FeatureState, Project, User
from tracker.repositories.state import FeatureStateContainer

log = logging.getLogger(__name__)

ProjectLookup = Callable[[str], Optional[Project]]
UserLookup = Callable[[str], Optional[User]]

_IMMUTABLE_FIELDS = ("name", "description", "project_id", "owner_id", "creation_date")


class FeatureRepository:
    """
    Features of every project.

    ``project_lookup``/``user_lookup`` resolve the foreign keys of a new
    feature; when given, a feature pointing at an unknown project or owner is
    rejected with ``NotFoundError``.
    """

    def __init__(self, state: FeatureStateContainer, *, project_lookup: ProjectLookup | None = None,
                 user_lookup: UserLookup | None = None) -> None:
        self.state = state
        self.project_lookup = project_lookup
        self.user_lookup = user_lookup
        self.hooks: EventHookRegistry[Feature] = EventHookRegistry(
            [EventKind.FEATURE_ADDED, EventKind.FEATURE_UPDATED]
        )

    def attach_event_hook(self, selector: Any, hook: Hook) -> Subscription:
        return self.hooks.attach(selector, hook)

    def _check_references(self, feature: Feature) -> None:
        if self.project_lookup is not None and self.project_lookup(feature.project_id) is None:
            raise NotFoundError(f"No project with id '{feature.project_id}' found")
        if self.user_lookup is not None and self.user_lookup(feature.owner_id) is None:
            raise NotFoundError(f"No user with id '{feature.owner_id}' found")

    def add_feature(self, feature: Feature) -> None:
        self._check_references(feature)
        self.state.modify(
            lambda m: m.add_feature(feature),
            on_commit=lambda: self.hooks.dispatch(EventKind.FEATURE_ADDED, feature),
        )
        log.info("added feature %s to project %s", feature.id, feature.project_id)

    def update_feature(self, feature: Feature) -> None:
        """Replace the stored feature with the same id; only priority and state may differ."""
        stored = self.state.by_id(feature.id)
        if stored is None:
            raise NotFoundError(f"No feature with id '{feature.id}' found")
        changed = [name for name in _IMMUTABLE_FIELDS if getattr(stored, name) != getattr(feature, name)]
        if changed:
            raise ValidationError(f"Feature fields cannot change after creation: {', '.join(changed)}")
        self.state.modify(
            lambda m: m.update_feature(feature),
            on_commit=lambda: self.hooks.dispatch(EventKind.FEATURE_UPDATED, feature),
        )

    def change_priority(self, feature_id: str, priority: FeaturePriority | str) -> Feature:
        updated = self._require(feature_id).with_priority(priority)
        self.update_feature(updated)
        return updated

    def change_state(self, feature_id: str, state: FeatureState | str) -> Feature:
        updated = self._require(feature_id).with_state(state)
        self.update_feature(updated)
        return updated

    def _require(self, feature_id: str) -> Feature:
        feature = self.state.by_id(feature_id)
        if feature is None:
            raise NotFoundError(f"No feature with id '{feature_id}' found")
        return feature

    def get_feature(self, feature_id: str) -> Feature | None:
        return self.state.by_id(feature_id)

    def get_project_features(self, project: Project) -> list[Feature]:
        return self.state.by_project(project.id)

    def query_all(self) -> list[Feature]:
        return self.state.all()
