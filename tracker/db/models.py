"""SQLAlchemy models behind the remote backend service."""
from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    String,
    Text,
    UniqueConstraint,
    func,
)

from .session import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("first_name", "last_name", name="uq_users_full_name"),)

    id = Column(String(64), primary_key=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="developer")
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
