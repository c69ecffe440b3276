"""
Application context: exactly one repository per entity type, built once at
startup and handed to whoever needs it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from tracker.core.config import Settings, get_settings
from tracker.repositories.feature_repository import FeatureRepository
from tracker.repositories.json_storage import JsonFileStorage, KeyValueStorage
from tracker.repositories.project_repository import (
    LocalProjectRepository,
    NameKeyedProjectRepository,
    ProjectRepository,
    RemoteProjectRepository,
)
from tracker.repositories.remote_backend import RemoteBackend
from tracker.repositories.state import (
    FeatureStateContainer,
    ProjectStateContainer,
    UserStateContainer,
)
from tracker.repositories.user_repository import UserRepository
from tracker.services.auth_service import LocalAuthProvider, RemoteAuthProvider

log = logging.getLogger(__name__)


@dataclass
class TrackerContext:
    settings: Settings
    storage: KeyValueStorage
    projects: ProjectRepository
    users: UserRepository
    features: FeatureRepository
    backend: Optional[RemoteBackend] = None

    def close(self) -> None:
        if self.backend is not None:
            self.backend.close()

    def __enter__(self) -> "TrackerContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def build_context(
    settings: Settings | None = None,
    *,
    storage: KeyValueStorage | None = None,
    http_client: httpx.Client | None = None,
) -> TrackerContext:
    """
    Wire the repositories for ``settings.storage``:

    - ``local``: everything in the key-value store, projects keyed by id;
    - ``local-by-name``: same, but one document per project keyed by name;
    - ``remote``: projects and credentials on the backend service, the user
      session and features in the local store.
    """
    settings = settings or get_settings()
    storage = storage if storage is not None else JsonFileStorage(settings.data_file)
    user_state = UserStateContainer(storage)

    backend: RemoteBackend | None = None
    if settings.storage == "remote":
        backend = RemoteBackend(settings.backend_url, client=http_client, timeout=settings.http_timeout)
        projects: ProjectRepository = RemoteProjectRepository(backend)
        users = UserRepository(user_state, RemoteAuthProvider(backend))
    else:
        if settings.storage == "local-by-name":
            projects = NameKeyedProjectRepository(storage)
        else:
            projects = LocalProjectRepository(ProjectStateContainer(storage))
        users = UserRepository(user_state, LocalAuthProvider(storage, user_state, settings.admin_password))

    features = FeatureRepository(
        FeatureStateContainer(storage),
        project_lookup=projects.query_by_id,
        user_lookup=users.query_by_id,
    )
    log.info("tracker context ready (storage=%s)", settings.storage)
    return TrackerContext(
        settings=settings,
        storage=storage,
        projects=projects,
        users=users,
        features=features,
        backend=backend,
    )
