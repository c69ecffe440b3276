"""
Entity state containers.

Each container is the single in-memory holder of one entity collection (plus
the active selection for projects and users). ``modify`` is the only way to
change it: the callback receives a mutator scoped to what the entity type
allows, then the whole snapshot is written back under the container's key.

Failure policy: if the callback or the write raises, the in-memory state is
restored from the pre-mutation snapshot and the error propagates.

Reentrancy: a ``modify`` issued while another one (or its commit callback)
is running is queued and applied, in order, once the running one finished
its write and commit callback. A queued modification that fails is rolled back
and logged; the outer call, already committed, still returns normally.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Generic, Optional, TypeVar

from tracker.core.errors import NotFoundError, PersistenceError, ValidationError
from tracker.domain.models import DEFAULT_ADMIN, Feature, Project, User
from tracker.repositories.json_storage import KeyValueStorage

log = logging.getLogger(__name__)

M = TypeVar("M")
CommitCallback = Callable[[], None]


class StateContainer(Generic[M]):
    storage_key = ""

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage
        self._busy = False
        self._pending: deque[tuple[Callable[[M], Any], Optional[CommitCallback]]] = deque()
        existing = storage.get(self.storage_key)
        if existing is None:
            self._reset()
            self._write()
            log.info("initialised empty state under '%s'", self.storage_key)
        else:
            self._restore(existing)

    # -------------------------- subclass hooks --------------------------
    def _reset(self) -> None:
        raise NotImplementedError

    def _restore(self, document: Any) -> None:
        raise NotImplementedError

    def snapshot(self) -> dict:
        raise NotImplementedError

    def _mutator(self) -> M:
        raise NotImplementedError

    # -------------------------- mutation --------------------------
    @property
    def busy(self) -> bool:
        return self._busy

    def modify(self, fn: Callable[[M], Any], on_commit: Optional[CommitCallback] = None) -> bool:
        """
        Apply ``fn`` and persist. ``on_commit`` runs after a successful write.

        Returns True when applied immediately, False when queued behind a
        running ``modify``.
        """
        if self._busy:
            self._pending.append((fn, on_commit))
            log.debug("queued nested modify on '%s' (%d pending)", self.storage_key, len(self._pending))
            return False
        self._busy = True
        try:
            self._apply(fn, on_commit)
            while self._pending:
                queued_fn, queued_commit = self._pending.popleft()
                try:
                    self._apply(queued_fn, queued_commit)
                except Exception:
                    # queued failures never reach the outer caller
                    log.exception("queued modification on '%s' failed and was rolled back", self.storage_key)
        finally:
            self._busy = False
            if self._pending:
                log.warning("dropping %d queued modification(s) on '%s': the outer modification failed",
                            len(self._pending), self.storage_key)
                self._pending.clear()
        return True

    def _apply(self, fn: Callable[[M], Any], on_commit: Optional[CommitCallback]) -> None:
        before = self.snapshot()
        try:
            fn(self._mutator())
            self._write()
        except Exception:
            self._restore(before)
            raise
        if on_commit is not None:
            on_commit()

    def _write(self) -> None:
        try:
            self.storage.set(self.storage_key, self.snapshot())
        except OSError as exc:
            raise PersistenceError(f"Could not persist '{self.storage_key}': {exc}") from exc


# ------------------------------------------------------------------ projects
class ProjectMutator:
    def __init__(self, container: "ProjectStateContainer") -> None:
        self._c = container

    def add(self, project: Project) -> None:
        if self._c.by_id(project.id) is not None:
            raise ValidationError(f"Project id '{project.id}' is already stored")
        self._c._projects.append(project)

    def remove(self, project_id: str) -> None:
        before = len(self._c._projects)
        self._c._projects = [p for p in self._c._projects if p.id != project_id]
        if len(self._c._projects) == before:
            raise NotFoundError(f"No project with id '{project_id}' found")
        if self._c._active_id == project_id:
            self._c._active_id = None

    def replace(self, project: Project) -> None:
        for idx, existing in enumerate(self._c._projects):
            if existing.id == project.id:
                self._c._projects[idx] = project
                return
        raise NotFoundError(f"No project with id '{project.id}' found")

    def set_active(self, project_id: str | None) -> None:
        self._c._active_id = project_id


class ProjectStateContainer(StateContainer[ProjectMutator]):
    storage_key = "project-repository"

    def _reset(self) -> None:
        self._projects: list[Project] = []
        self._active_id: str | None = None

    def _restore(self, document: Any) -> None:
        document = document or {}
        self._projects = [Project.from_document(d) for d in document.get("projects", [])]
        self._active_id = document.get("activeProjectID")

    def snapshot(self) -> dict:
        return {
            "projects": [p.to_document() for p in self._projects],
            "activeProjectID": self._active_id,
        }

    def _mutator(self) -> ProjectMutator:
        return ProjectMutator(self)

    def all(self) -> list[Project]:
        return list(self._projects)

    def by_id(self, project_id: str) -> Project | None:
        return next((p for p in self._projects if p.id == project_id), None)

    def by_name(self, name: str) -> Project | None:
        return next((p for p in self._projects if p.name == name), None)

    def active(self) -> Project | None:
        if self._active_id is None:
            return None
        return self.by_id(self._active_id)


# ------------------------------------------------------------------ users
class UserMutator:
    def __init__(self, container: "UserStateContainer") -> None:
        self._c = container

    def add(self, user: User) -> None:
        if self._c.by_id(user.id) is None:
            self._c._users.append(user)

    def set_active(self, user_id: str | None) -> None:
        self._c._active_id = user_id


class UserStateContainer(StateContainer[UserMutator]):
    """Users; a fresh store is seeded with the default administrator as active user."""

    storage_key = "user-repository"

    def _reset(self) -> None:
        self._users: list[User] = [DEFAULT_ADMIN]
        self._active_id: str | None = DEFAULT_ADMIN.id

    def _restore(self, document: Any) -> None:
        document = document or {}
        self._users = [User.from_document(d) for d in document.get("users", [])]
        self._active_id = document.get("activeUserID")

    def snapshot(self) -> dict:
        return {
            "users": [u.to_document() for u in self._users],
            "activeUserID": self._active_id,
        }

    def _mutator(self) -> UserMutator:
        return UserMutator(self)

    def all(self) -> list[User]:
        return list(self._users)

    def by_id(self, user_id: str) -> User | None:
        return next((u for u in self._users if u.id == user_id), None)

    def by_name(self, first_name: str, last_name: str) -> User | None:
        return next(
            (u for u in self._users if u.first_name == first_name and u.last_name == last_name),
            None,
        )

    def active(self) -> User | None:
        if self._active_id is None:
            return None
        return self.by_id(self._active_id)


# ------------------------------------------------------------------ features
class FeatureMutator:
    def __init__(self, container: "FeatureStateContainer") -> None:
        self._c = container

    def add_feature(self, feature: Feature) -> None:
        if self._c.by_id(feature.id) is not None:
            raise ValidationError(f"Feature id '{feature.id}' is already stored")
        self._c._features.append(feature)

    def update_feature(self, feature: Feature) -> None:
        for idx, existing in enumerate(self._c._features):
            if existing.id == feature.id:
                self._c._features[idx] = feature
                return
        raise NotFoundError(f"No feature with id '{feature.id}' found")


class FeatureStateContainer(StateContainer[FeatureMutator]):
    storage_key = "feature-repository"

    def _reset(self) -> None:
        self._features: list[Feature] = []

    def _restore(self, document: Any) -> None:
        document = document or {}
        self._features = [Feature.from_document(d) for d in document.get("features", [])]

    def snapshot(self) -> dict:
        return {"features": [f.to_document() for f in self._features]}

    def _mutator(self) -> FeatureMutator:
        return FeatureMutator(self)

    def all(self) -> list[Feature]:
        return list(self._features)

    def by_id(self, feature_id: str) -> Feature | None:
        return next((f for f in self._features if f.id == feature_id), None)

    def by_project(self, project_id: str) -> list[Feature]:
        return [f for f in self._features if f.project_id == project_id]
