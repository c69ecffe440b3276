"""Domain entities (Project, User, Feature) and their closed enumerations."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping

from tracker.core.errors import ValidationError
from tracker.core.utils import new_id, utc_now_iso


_LABELS = {"Role": "role", "FeaturePriority": "feature priority", "FeatureState": "feature state"}


class _ClosedEnum(str, Enum):
    """String enum whose ``parse`` rejects values outside the closed set."""

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        allowed = ", ".join(m.value for m in cls)
        label = _LABELS.get(cls.__name__, "value")
        raise ValidationError(f"Unsupported {label} '{value}' (expected one of: {allowed})")


class Role(_ClosedEnum):
    GUEST = "guest"
    DEVELOPER = "developer"
    DEVOPS = "devops"
    ADMIN = "admin"


class FeaturePriority(_ClosedEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FeatureState(_ClosedEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class _Unset:
    """Marker for an update field that was not supplied."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# ------------------------------------------------------------------ projects
@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: str = ""

    def to_document(self) -> dict:
        return {"Id": self.id, "Name": self.name, "Description": self.description}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Project":
        return cls(
            id=str(doc.get("Id") or ""),
            name=str(doc.get("Name") or ""),
            description=str(doc.get("Description") or ""),
        )


@dataclass(frozen=True)
class ProjectUpdateParams:
    """
    Partial update of a project.

    ``name``/``description`` left as ``UNSET`` are preserved; any other value
    (including an empty string) overwrites. ``id`` is the project identifier,
    or the old name in the name-keyed storage.
    """

    id: str
    name: Any = UNSET
    description: Any = UNSET

    @property
    def is_empty(self) -> bool:
        return self.name is UNSET and self.description is UNSET

    def apply(self, project: Project) -> Project:
        changes = {}
        if self.name is not UNSET:
            changes["name"] = self.name
        if self.description is not UNSET:
            changes["description"] = self.description
        return replace(project, **changes) if changes else project

    def to_document(self) -> dict:
        doc: dict = {"Id": self.id}
        if self.name is not UNSET:
            doc["Name"] = self.name
        if self.description is not UNSET:
            doc["Description"] = self.description
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ProjectUpdateParams":
        return cls(
            id=str(doc.get("Id") or ""),
            name=doc["Name"] if doc.get("Name") is not None else UNSET,
            description=doc["Description"] if doc.get("Description") is not None else UNSET,
        )


# ------------------------------------------------------------------ users
@dataclass(frozen=True)
class User:
    id: str
    first_name: str
    last_name: str
    role: Role = Role.DEVELOPER

    def __post_init__(self):
        object.__setattr__(self, "role", Role.parse(self.role))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_guest(self) -> bool:
        return self.role is Role.GUEST

    def to_document(self) -> dict:
        return {
            "Id": self.id,
            "FirstName": self.first_name,
            "LastName": self.last_name,
            "Role": self.role.value,
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "User":
        return cls(
            id=str(doc.get("Id") or ""),
            first_name=str(doc.get("FirstName") or ""),
            last_name=str(doc.get("LastName") or ""),
            role=doc.get("Role") or Role.DEVELOPER,
        )


DEFAULT_ADMIN = User(id="admin", first_name="Admin", last_name="Admin", role=Role.ADMIN)


# ------------------------------------------------------------------ features
@dataclass(frozen=True)
class Feature:
    id: str
    name: str
    description: str
    priority: FeaturePriority
    project_id: str
    owner_id: str
    creation_date: str
    state: FeatureState = FeatureState.TODO

    def __post_init__(self):
        object.__setattr__(self, "priority", FeaturePriority.parse(self.priority))
        object.__setattr__(self, "state", FeatureState.parse(self.state))

    def with_priority(self, priority: FeaturePriority | str) -> "Feature":
        return replace(self, priority=FeaturePriority.parse(priority))

    def with_state(self, state: FeatureState | str) -> "Feature":
        return replace(self, state=FeatureState.parse(state))

    def to_document(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "priority": self.priority.value,
            "projectID": self.project_id,
            "creationDate": self.creation_date,
            "ownerID": self.owner_id,
            "state": self.state.value,
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Feature":
        return cls(
            id=str(doc.get("id") or ""),
            name=str(doc.get("name") or ""),
            description=str(doc.get("description") or ""),
            priority=doc.get("priority"),
            project_id=str(doc.get("projectID") or ""),
            owner_id=str(doc.get("ownerID") or ""),
            creation_date=str(doc.get("creationDate") or ""),
            state=doc.get("state") or FeatureState.TODO,
        )


def create_new_feature_right_now(
    *,
    name: str,
    description: str,
    priority: FeaturePriority | str,
    owner: User,
    project: Project,
) -> Feature:
    """
    Build a new feature owned by ``owner`` inside ``project``.

    The feature gets a fresh identifier, state ``todo`` and the current UTC
    instant as creation date. The referenced entities are taken as already
    resolved; existence is checked when the feature is added to a repository.
    """
    return Feature(
        id=new_id(),
        name=name,
        description=description,
        priority=FeaturePriority.parse(priority),
        project_id=project.id,
        owner_id=owner.id,
        creation_date=utc_now_iso(),
        state=FeatureState.TODO,
    )


@dataclass
class FeatureBoard:
    """Features split into the todo / in-progress / done columns."""

    todo: list[Feature] = field(default_factory=list)
    in_progress: list[Feature] = field(default_factory=list)
    done: list[Feature] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return max(len(self.todo), len(self.in_progress), len(self.done))


def group_by_state(features: Iterable[Feature]) -> FeatureBoard:
    board = FeatureBoard()
    columns = {
        FeatureState.TODO: board.todo,
        FeatureState.IN_PROGRESS: board.in_progress,
        FeatureState.DONE: board.done,
    }
    for feature in features:
        columns[feature.state].append(feature)
    return board
