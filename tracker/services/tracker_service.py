"""
Use cases behind the tracker forms (create/update project, submit feature,
change priority/state) with the role checks applied before any repository
is touched.
"""
from __future__ import annotations

import logging

from tracker.core.errors import NoActiveUserError, NotFoundError, ValidationError
from tracker.domain.models import (
    UNSET,
    Feature,
    FeatureBoard,
    FeaturePriority,
    FeatureState,
    Project,
    ProjectUpdateParams,
    Role,
    User,
    create_new_feature_right_now,
    group_by_state,
)
from tracker.domain.policy import ensure_can_mutate
from tracker.services.context import TrackerContext

log = logging.getLogger(__name__)


def _choice(value):
    """Normalise a select/text form value; enums pass through untouched."""
    return value.strip().lower() if isinstance(value, str) else value


class TrackerService:
    def __init__(self, context: TrackerContext) -> None:
        self.context = context
        self.projects = context.projects
        self.users = context.users
        self.features = context.features

    # -------------------------- session --------------------------
    def current_user(self) -> User | None:
        try:
            return self.users.get_active()
        except NoActiveUserError:
            return None

    def login(self, first_name: str, last_name: str, password: str) -> bool:
        return self.users.login_user(first_name.strip(), last_name.strip(), password)

    def register(self, first_name: str, last_name: str, password: str, role: Role | str) -> bool:
        if not first_name.strip() or not last_name.strip():
            raise ValidationError("First and last name are required")
        return self.users.register_and_login_user(first_name.strip(), last_name.strip(), password, _choice(role))

    # -------------------------- projects --------------------------
    def create_project(self, name: str, description: str) -> Project:
        ensure_can_mutate(self.current_user(), "create projects")
        name = (name or "").strip()
        if not name:
            raise ValidationError("Project name is required")
        return self.projects.create_with_random_id(name, description or "")

    def update_project(self, old_name: str, new_name: str = "", description: str = "") -> Project:
        """Empty form fields leave the stored value unchanged."""
        ensure_can_mutate(self.current_user(), "update projects")
        project = self.projects.query_by_name(old_name)
        if project is None:
            raise NotFoundError(f"No project with name '{old_name}' found")
        params = ProjectUpdateParams(
            id=project.id,
            name=new_name if new_name else UNSET,
            description=description if description else UNSET,
        )
        self.projects.update(params)
        return self.projects.query_by_id(project.id) or params.apply(project)

    def delete_project(self, name: str) -> None:
        ensure_can_mutate(self.current_user(), "delete projects")
        self.projects.delete_by_name(name)

    def select_project(self, name: str) -> Project:
        project = self.projects.query_by_name(name)
        if project is None:
            raise NotFoundError(f"No project with name '{name}' found")
        self.projects.set_active(project)
        return project

    # -------------------------- features --------------------------
    def submit_feature(self, name: str, description: str, priority: FeaturePriority | str) -> Feature:
        """New feature in the active project, owned by the active user."""
        user = self.current_user()
        ensure_can_mutate(user, "create features")
        priority = FeaturePriority.parse(_choice(priority))
        project = self.projects.get_active()
        feature = create_new_feature_right_now(
            name=name,
            description=description,
            priority=priority,
            owner=user,
            project=project,
        )
        self.features.add_feature(feature)
        return feature

    def change_feature_priority(self, feature_id: str, priority: FeaturePriority | str) -> Feature:
        ensure_can_mutate(self.current_user(), "change feature priority")
        return self.features.change_priority(feature_id, _choice(priority))

    def change_feature_state(self, feature_id: str, state: FeatureState | str) -> Feature:
        ensure_can_mutate(self.current_user(), "change feature state")
        return self.features.change_state(feature_id, _choice(state))

    def project_board(self, project: Project | None = None) -> FeatureBoard:
        target = project or self.projects.get_active()
        return group_by_state(self.features.get_project_features(target))
