"""
Project repositories.

Three storage variants share one contract (``ProjectRepository``):

* ``LocalProjectRepository``: identifier-keyed collection snapshot in a
  key-value store, through ``ProjectStateContainer``;
* ``NameKeyedProjectRepository``: one document per project stored under its
  name, which makes names unique;
* ``RemoteProjectRepository``: every operation is a call to the backend
  service; only the active selection is held locally.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Any

from tracker.core.errors import DuplicateNameError, NoActiveProjectError, NotFoundError
from tracker.core.utils import new_id
from tracker.domain.hooks import EventHookRegistry, EventKind, Hook, Subscription
from tracker.domain.models import Project, ProjectUpdateParams, UNSET
from tracker.repositories.json_storage import KeyValueStorage
from tracker.repositories.remote_backend import RemoteBackend
from tracker.repositories.state import ProjectStateContainer

log = logging.getLogger(__name__)


class ProjectRepository:
    """CRUD by id/name, the active selection and its hooks."""

    def __init__(self) -> None:
        self.hooks: EventHookRegistry[Project] = EventHookRegistry([EventKind.ACTIVE_PROJECT_CHANGED])
        self._activating = False
        self._deferred: deque[Project] = deque()

    # -------------------------- storage specific --------------------------
    def create_with_random_id(self, name: str, description: str) -> Project:
        raise NotImplementedError

    def query_all(self) -> list[Project]:
        raise NotImplementedError

    def delete_by_id(self, project_id: str) -> None:
        raise NotImplementedError

    def update(self, params: ProjectUpdateParams) -> None:
        raise NotImplementedError

    def get_active(self) -> Project:
        raise NotImplementedError

    def _store_active(self, project: Project) -> None:
        raise NotImplementedError

    # -------------------------- shared --------------------------
    def query_by_name(self, name: str) -> Project | None:
        return next((p for p in self.query_all() if p.name == name), None)

    def query_by_id(self, project_id: str) -> Project | None:
        return next((p for p in self.query_all() if p.id == project_id), None)

    def delete_by_name(self, name: str) -> None:
        project = self.query_by_name(name)
        if project is None:
            raise NotFoundError(f"No project with name '{name}' found")
        self.delete_by_id(project.id)

    def attach_event_hook(self, selector: Any, hook: Hook) -> Subscription:
        return self.hooks.attach(selector, hook)

    def set_active(self, project: Project) -> None:
        """
        Select ``project`` and notify ``active-project-changed`` hooks.

        A selection requested from inside one of those hooks is applied after
        the current dispatch completes; if it fails, the error is logged.
        """
        if self._activating:
            self._deferred.append(project)
            return
        self._activating = True
        try:
            self._activate(project)
            while self._deferred:
                queued = self._deferred.popleft()
                try:
                    self._activate(queued)
                except Exception:
                    log.exception("deferred selection of project %s failed", queued.id)
        finally:
            self._activating = False
            self._deferred.clear()

    def _activate(self, project: Project) -> None:
        self._store_active(project)
        self._announce(project)

    def _announce(self, project: Project) -> None:
        log.info("active project is now %s (%s)", project.name, project.id)
        self.hooks.dispatch(EventKind.ACTIVE_PROJECT_CHANGED, project)

    def _no_active(self) -> NoActiveProjectError:
        return NoActiveProjectError("No currently active project")


class LocalProjectRepository(ProjectRepository):
    def __init__(self, state: ProjectStateContainer) -> None:
        super().__init__()
        self.state = state

    def create_with_random_id(self, name: str, description: str) -> Project:
        project = Project(id=new_id(), name=name, description=description)
        self.state.modify(lambda m: m.add(project))
        log.info("created project %s (%s)", project.name, project.id)
        return project

    def query_all(self) -> list[Project]:
        return self.state.all()

    def query_by_name(self, name: str) -> Project | None:
        return self.state.by_name(name)

    def query_by_id(self, project_id: str) -> Project | None:
        return self.state.by_id(project_id)

    def delete_by_id(self, project_id: str) -> None:
        if self.state.by_id(project_id) is None:
            raise NotFoundError(f"No project with id '{project_id}' found")
        self.state.modify(lambda m: m.remove(project_id))
        log.info("deleted project %s", project_id)

    def update(self, params: ProjectUpdateParams) -> None:
        if self.state.by_id(params.id) is None:
            raise NotFoundError(f"No project with id '{params.id}' found")
        if params.is_empty:
            return

        def _replace(m):
            current = self.state.by_id(params.id)
            if current is None:
                raise NotFoundError(f"No project with id '{params.id}' found")
            m.replace(params.apply(current))

        self.state.modify(_replace)

    def set_active(self, project: Project) -> None:
        stored = self.state.by_id(project.id)
        if stored is None:
            raise NotFoundError(f"No project with id '{project.id}' found")
        # ordering of nested selections is handled by the container queue
        self.state.modify(
            lambda m: m.set_active(stored.id),
            on_commit=lambda: self._announce(stored),
        )

    def get_active(self) -> Project:
        project = self.state.active()
        if project is None:
            raise self._no_active()
        return project


class NameKeyedProjectRepository(ProjectRepository):
    """Each project is its own document under ``project:<name>``."""

    KEY_PREFIX = "project:"
    ACTIVE_KEY = "active-project"

    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__()
        self.storage = storage

    def _key(self, name: str) -> str:
        return f"{self.KEY_PREFIX}{name}"

    def _resolve(self, name_or_id: str) -> Project | None:
        return self.query_by_name(name_or_id) or self.query_by_id(name_or_id)

    def create_with_random_id(self, name: str, description: str) -> Project:
        if self.storage.get(self._key(name)) is not None:
            raise DuplicateNameError(f"Project '{name}' already exists")
        project = Project(id=new_id(), name=name, description=description)
        self.storage.set(self._key(name), project.to_document())
        log.info("created project %s (%s)", project.name, project.id)
        return project

    def query_all(self) -> list[Project]:
        projects = []
        for key in self.storage.keys():
            if not key.startswith(self.KEY_PREFIX):
                continue
            doc = self.storage.get(key)
            if isinstance(doc, dict):
                projects.append(Project.from_document(doc))
        return projects

    def query_by_name(self, name: str) -> Project | None:
        doc = self.storage.get(self._key(name))
        return Project.from_document(doc) if isinstance(doc, dict) else None

    def delete_by_id(self, project_id: str) -> None:
        project = self.query_by_id(project_id)
        if project is None:
            raise NotFoundError(f"No project with id '{project_id}' found")
        self._delete(project)

    def delete_by_name(self, name: str) -> None:
        project = self.query_by_name(name)
        if project is None:
            raise NotFoundError(f"No project with name '{name}' found")
        self._delete(project)

    def _delete(self, project: Project) -> None:
        self.storage.delete(self._key(project.name))
        if self.storage.get(self.ACTIVE_KEY) == project.name:
            self.storage.delete(self.ACTIVE_KEY)
        log.info("deleted project %s", project.name)

    def update(self, params: ProjectUpdateParams) -> None:
        """``params.id`` may carry the old name or the identifier."""
        project = self._resolve(params.id)
        if project is None:
            raise NotFoundError(f"No project named '{params.id}' found")
        if params.is_empty:
            return
        updated = ProjectUpdateParams(project.id, params.name, params.description).apply(project)
        renamed = params.name is not UNSET and updated.name != project.name
        if renamed and self.storage.get(self._key(updated.name)) is not None:
            raise DuplicateNameError(f"Project '{updated.name}' already exists")
        self.storage.set(self._key(updated.name), updated.to_document())
        if renamed:
            self.storage.delete(self._key(project.name))
            if self.storage.get(self.ACTIVE_KEY) == project.name:
                self.storage.set(self.ACTIVE_KEY, updated.name)

    def _store_active(self, project: Project) -> None:
        if self.query_by_name(project.name) is None:
            raise NotFoundError(f"No project with name '{project.name}' found")
        self.storage.set(self.ACTIVE_KEY, project.name)

    def get_active(self) -> Project:
        name = self.storage.get(self.ACTIVE_KEY)
        project = self.query_by_name(name) if isinstance(name, str) else None
        if project is None:
            raise self._no_active()
        return project


class RemoteProjectRepository(ProjectRepository):
    def __init__(self, backend: RemoteBackend) -> None:
        super().__init__()
        self.backend = backend
        self._active: Project | None = None

    def create_with_random_id(self, name: str, description: str) -> Project:
        project = Project(id=new_id(), name=name, description=description)
        self.backend.insert_project(project)
        log.info("created project %s (%s) remotely", project.name, project.id)
        return project

    def query_all(self) -> list[Project]:
        return self.backend.get_all_projects()

    def delete_by_id(self, project_id: str) -> None:
        if not self.backend.delete_project(project_id):
            raise NotFoundError(f"No project with id '{project_id}' found")
        if self._active is not None and self._active.id == project_id:
            self._active = None

    def update(self, params: ProjectUpdateParams) -> None:
        if not self.backend.update_project(params):
            raise NotFoundError(f"No project with id '{params.id}' found")
        if self._active is not None and self._active.id == params.id:
            self._active = params.apply(self._active)

    def _store_active(self, project: Project) -> None:
        self._active = project

    def get_active(self) -> Project:
        if self._active is None:
            raise self._no_active()
        return self._active

