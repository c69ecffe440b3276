from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

import pytest

# make the tracker package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tracker.core import config as core_config  # noqa: E402
from tracker.db import models  # noqa: E402
from tracker.db import session as db_session  # noqa: E402
from tracker.repositories.json_storage import MemoryStorage  # noqa: E402

ADMIN_PASSWORD = "admin-pw"


@pytest.fixture()
def make_settings():
    def _make(**overrides):
        base = core_config.get_settings()
        values = {"storage": "local", "admin_password": ADMIN_PASSWORD, "app_env": "test"}
        values.update(overrides)
        return dataclasses.replace(base, **values)

    return _make


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Temporary SQLite database for the backend service; caches reset before and after."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    core_config.get_settings.cache_clear()
    db_session.reset_engine()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    models.Base.metadata.drop_all(bind=engine)
    db_session.reset_engine()
    core_config.get_settings.cache_clear()


@pytest.fixture()
def backend_client(temp_db):
    from fastapi.testclient import TestClient

    from tracker.app import create_app

    with TestClient(create_app()) as client:
        yield client
