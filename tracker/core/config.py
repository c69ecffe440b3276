"""
Configuration helpers for the tracker.

Exposes a Settings object that reads environment variables (storage variant,
data file, remote backend URL, database URL, etc.) so that repositories and
routers do not fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

STORAGE_VARIANTS = ("local", "local-by-name", "remote")


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    storage: str
    data_file: str
    backend_url: str
    http_timeout: float
    database_url: str
    admin_password: str
    cors_origins: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _float(value: str, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    storage = (os.getenv("TRACKER_STORAGE") or "local").strip().lower()
    if storage not in STORAGE_VARIANTS:
        storage = "local"
    origins = os.getenv("TRACKER_CORS_ORIGINS", "*")

    return Settings(
        app_env=(os.getenv("TRACKER_ENV") or "dev").lower(),
        storage=storage,
        data_file=os.getenv("TRACKER_DATA_FILE", "tracker-data.json"),
        backend_url=os.getenv("TRACKER_BACKEND_URL", "http://localhost:5959").rstrip("/"),
        http_timeout=_float(os.getenv("TRACKER_HTTP_TIMEOUT", "10"), 10.0),
        database_url=os.getenv("DATABASE_URL", ""),
        admin_password=os.getenv("TRACKER_ADMIN_PASSWORD", "admin"),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )
