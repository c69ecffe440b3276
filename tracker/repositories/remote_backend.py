"""
HTTP client for the remote tracker backend.

The backend exposes a fixed set of POST/GET routes (see ``tracker.routers``).
Pass a custom ``client`` in tests (FastAPI's TestClient is an httpx.Client)
to exercise the real service without opening sockets.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from tracker.core.config import get_settings
from tracker.core.errors import BackendError
from tracker.domain.models import Project, ProjectUpdateParams, User

log = logging.getLogger(__name__)


class RemoteBackend:
    """Thin wrapper over the backend routes; every call is one round-trip."""

    def __init__(self, base_url: str | None = None, client: httpx.Client | None = None,
                 timeout: float | None = None) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        """Return (or lazily create) the httpx client."""
        if self._client is None:
            self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout)
        return self._client

    def close(self) -> None:
        """Close the client this backend created; injected clients stay open."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def _post(self, path: str, *, json_body: Any = None, raw_body: str | None = None) -> httpx.Response:
        try:
            if raw_body is not None:
                return self.client.post(path, content=raw_body.encode("utf-8"),
                                        headers={"Content-Type": "text/plain; charset=utf-8"})
            return self.client.post(path, json=json_body)
        except httpx.HTTPError as exc:
            log.warning("POST %s failed: %s", path, exc)
            raise BackendError(f"POST {path} failed: {exc}") from exc

    @staticmethod
    def _expect_ok(resp: httpx.Response, what: str) -> None:
        if resp.is_success:
            return
        raise BackendError(f"{what} answered {resp.status_code}", status_code=resp.status_code)

    @staticmethod
    def _json(resp: httpx.Response, what: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            log.warning("%s answered a non-JSON body: %r", what, resp.text[:200])
            raise BackendError(f"{what} answered a non-JSON body", status_code=resp.status_code) from exc

    def _user(self, resp: httpx.Response, what: str) -> User:
        payload = self._json(resp, what)
        if not isinstance(payload, dict):
            raise BackendError(f"{what} did not return a JSON object", status_code=resp.status_code)
        return User.from_document(payload)

    # -------------------------- projects --------------------------
    def get_all_projects(self) -> list[Project]:
        try:
            resp = self.client.get("/get-all-projects")
        except httpx.HTTPError as exc:
            log.warning("GET /get-all-projects failed: %s", exc)
            raise BackendError(f"GET /get-all-projects failed: {exc}") from exc
        self._expect_ok(resp, "/get-all-projects")
        payload = self._json(resp, "/get-all-projects")
        if not isinstance(payload, list):
            raise BackendError("/get-all-projects did not return a JSON array")
        return [Project.from_document(doc) for doc in payload if isinstance(doc, dict)]

    def insert_project(self, project: Project) -> None:
        resp = self._post("/insert-project", json_body=project.to_document())
        self._expect_ok(resp, "/insert-project")

    def update_project(self, params: ProjectUpdateParams) -> bool:
        """Return False when the backend does not know the project."""
        resp = self._post("/update-project", json_body=params.to_document())
        if resp.status_code == 404:
            return False
        self._expect_ok(resp, "/update-project")
        return True

    def delete_project(self, project_id: str) -> bool:
        resp = self._post("/delete-project", raw_body=project_id)
        if resp.status_code == 404:
            return False
        self._expect_ok(resp, "/delete-project")
        return True

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> User | None:
        resp = self._post("/get-user", raw_body=user_id)
        if resp.status_code == 404:
            return None
        self._expect_ok(resp, "/get-user")
        return self._user(resp, "/get-user")

    def login_user(self, first_name: str, last_name: str, password: str) -> User | None:
        """Success is signalled by the HTTP status; the body carries the user."""
        resp = self._post(
            "/login-user",
            json_body={"FirstName": first_name, "LastName": last_name, "Password": password},
        )
        if not resp.is_success:
            log.info("login rejected for %s %s (%s)", first_name, last_name, resp.status_code)
            return None
        return self._user(resp, "/login-user")

    def register_user(self, user: User, password: str) -> bool:
        body = user.to_document()
        body["Password"] = password
        resp = self._post("/register-user", json_body=body)
        if resp.status_code == 409:
            return False
        self._expect_ok(resp, "/register-user")
        return True
