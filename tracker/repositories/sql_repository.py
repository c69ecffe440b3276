"""Data access for the backend service, backed by SQLAlchemy."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from tracker.db.models import Project as ProjectRow, User as UserRow
from tracker.db.session import get_session
from tracker.domain.models import Project, ProjectUpdateParams, UNSET, User


def _to_project(row: ProjectRow) -> Project:
    return Project(id=row.id, name=row.name, description=row.description or "")


def _to_user(row: UserRow) -> User:
    return User(id=row.id, first_name=row.first_name, last_name=row.last_name, role=row.role)


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session; returns domain entities."""

    # -------------------------- projects --------------------------
    def list_projects(self) -> list[Project]:
        with get_session() as session:
            rows = session.execute(select(ProjectRow).order_by(ProjectRow.created_at, ProjectRow.id)).scalars().all()
            return [_to_project(row) for row in rows]

    def insert_project(self, project: Project) -> bool:
        """False when a project with the same id already exists."""
        with get_session() as session:
            if session.get(ProjectRow, project.id) is not None:
                return False
            session.add(ProjectRow(id=project.id, name=project.name, description=project.description))
            session.commit()
            return True

    def update_project(self, params: ProjectUpdateParams) -> bool:
        with get_session() as session:
            row = session.get(ProjectRow, params.id)
            if row is None:
                return False
            if params.name is not UNSET:
                row.name = params.name
            if params.description is not UNSET:
                row.description = params.description
            session.commit()
            return True

    def delete_project(self, project_id: str) -> bool:
        with get_session() as session:
            result = session.execute(delete(ProjectRow).where(ProjectRow.id == project_id))
            session.commit()
            return bool(result.rowcount)

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        with get_session() as session:
            row = session.get(UserRow, user_id)
            return _to_user(row) if row else None

    def get_user_credentials(self, first_name: str, last_name: str) -> tuple[Optional[User], Optional[str]]:
        """(user, password_hash) for the given names, or (None, None)."""
        with get_session() as session:
            stmt = select(UserRow).where(UserRow.first_name == first_name, UserRow.last_name == last_name)
            row = session.execute(stmt).scalar_one_or_none()
            if row is None:
                return None, None
            return _to_user(row), row.password_hash

    def create_user(self, user: User, password_hash: str) -> bool:
        """False when the id or the first/last name pair is already taken."""
        with get_session() as session:
            session.add(
                UserRow(
                    id=user.id,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    role=user.role.value,
                    password_hash=password_hash,
                )
            )
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return False
            return True
