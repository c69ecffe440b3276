"""SQL storage of the backend service: engine/session helpers and table models."""

from .session import Base, get_engine, get_session, reset_engine

__all__ = ["Base", "get_engine", "get_session", "reset_engine"]
