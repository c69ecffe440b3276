"""
Backend service for the remote storage variant.

Run with ``uvicorn tracker.app:app --port 5959`` after creating the tables
(``python -m tracker.db.create_tables``).
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from tracker.core.config import get_settings
from tracker.routers import projects as projects_router
from tracker.routers import users as users_router

log = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = get_settings()
    app = FastAPI(title="Tracker Backend")

    # the browser client is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins) or ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=PlainTextResponse)
    def index():
        return "HELLO"

    app.include_router(projects_router.router)
    app.include_router(users_router.router)
    log.info("tracker backend configured (env=%s)", settings.app_env)
    return app


app = create_app()
