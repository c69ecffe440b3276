from __future__ import annotations

import pytest

from tracker.core.errors import NotFoundError, PersistenceError, ValidationError
from tracker.domain.models import DEFAULT_ADMIN, Project
from tracker.repositories.json_storage import JsonFileStorage, MemoryStorage
from tracker.repositories.state import (
    FeatureStateContainer,
    ProjectStateContainer,
    UserStateContainer,
)


class FlakyStorage(MemoryStorage):
    def __init__(self):
        super().__init__()
        self.fail_with = None
        self.writes = 0

    def set(self, key, document):
        if self.fail_with is not None:
            raise self.fail_with
        self.writes += 1
        super().set(key, document)


def test_initial_snapshots_are_persisted_immediately(storage):
    ProjectStateContainer(storage)
    UserStateContainer(storage)
    FeatureStateContainer(storage)

    assert storage.get("project-repository") == {"projects": [], "activeProjectID": None}
    assert storage.get("feature-repository") == {"features": []}
    users = storage.get("user-repository")
    assert users["users"] == [DEFAULT_ADMIN.to_document()]
    assert users["activeUserID"] == DEFAULT_ADMIN.id


def test_existing_snapshot_is_loaded_instead_of_reset(storage):
    first = ProjectStateContainer(storage)
    first.modify(lambda m: m.add(Project("p1", "One", "")))

    second = ProjectStateContainer(storage)
    assert second.all() == [Project("p1", "One", "")]


def test_modify_writes_one_full_snapshot_per_call():
    storage = FlakyStorage()
    state = ProjectStateContainer(storage)
    writes = storage.writes

    def add_two(m):
        m.add(Project("p1", "One", ""))
        m.add(Project("p2", "Two", ""))

    state.modify(add_two)

    assert storage.writes == writes + 1
    assert [p["Id"] for p in storage.get("project-repository")["projects"]] == ["p1", "p2"]


@pytest.mark.parametrize("error", [PersistenceError("quota exceeded"), OSError("disk full")])
def test_failed_write_rolls_back_memory_and_raises(error):
    storage = FlakyStorage()
    state = ProjectStateContainer(storage)
    state.modify(lambda m: m.add(Project("p1", "One", "")))

    storage.fail_with = error
    with pytest.raises(PersistenceError):
        state.modify(lambda m: m.add(Project("p2", "Two", "")))

    assert [p.id for p in state.all()] == ["p1"]
    assert [p["Id"] for p in storage.get("project-repository")["projects"]] == ["p1"]


def test_failing_mutator_leaves_state_untouched(storage):
    state = ProjectStateContainer(storage)
    state.modify(lambda m: m.add(Project("p1", "One", "")))

    def bad(m):
        m.add(Project("p2", "Two", ""))
        m.remove("missing")

    with pytest.raises(NotFoundError):
        state.modify(bad)
    assert [p.id for p in state.all()] == ["p1"]


def test_nested_modify_is_queued_until_outer_commit_finishes(storage):
    state = ProjectStateContainer(storage)
    seen = []

    def outer(m):
        m.add(Project("p1", "One", ""))
        queued = state.modify(lambda inner: inner.add(Project("p2", "Two", "")))
        seen.append(("queued", queued, [p.id for p in state.all()]))

    def on_commit():
        seen.append(("committed", [p["Id"] for p in storage.get("project-repository")["projects"]]))

    assert state.modify(outer, on_commit=on_commit) is True
    assert seen == [("queued", False, ["p1"]), ("committed", ["p1"])]
    assert [p.id for p in state.all()] == ["p1", "p2"]
    assert not state.busy


def test_removing_active_project_clears_selection(storage):
    state = ProjectStateContainer(storage)
    state.modify(lambda m: (m.add(Project("p1", "One", "")), m.set_active("p1")))
    assert state.active() == Project("p1", "One", "")

    state.modify(lambda m: m.remove("p1"))
    assert state.active() is None


def test_json_file_storage_round_trips_across_instances(tmp_path):
    path = tmp_path / "nested" / "data.json"
    state = ProjectStateContainer(JsonFileStorage(path))
    state.modify(lambda m: m.add(Project("p1", "Ünïcode", "desc")))

    reloaded = ProjectStateContainer(JsonFileStorage(path))
    assert reloaded.by_id("p1").name == "Ünïcode"
    assert not (tmp_path / "nested" / "data.json.tmp").exists()


def test_json_file_storage_rejects_corrupt_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceError):
        ProjectStateContainer(JsonFileStorage(path))


def test_failed_queued_modify_is_logged_and_the_rest_still_applies(storage, caplog):
    state = ProjectStateContainer(storage)
    state.modify(lambda m: m.add(Project("p1", "One", "")))

    def outer(m):
        m.set_active("p1")
        state.modify(lambda inner: inner.remove("missing"))
        state.modify(lambda inner: inner.add(Project("p2", "Two", "")))

    with caplog.at_level("ERROR", logger="tracker.repositories.state"):
        assert state.modify(outer) is True

    assert state.active() == Project("p1", "One", "")
    assert [p.id for p in state.all()] == ["p1", "p2"]
    assert [p["Id"] for p in storage.get("project-repository")["projects"]] == ["p1", "p2"]
    assert "queued modification on 'project-repository' failed" in caplog.text
    assert not state.busy


def test_duplicate_project_id_is_rejected_by_the_mutator(storage):
    state = ProjectStateContainer(storage)
    state.modify(lambda m: m.add(Project("p1", "One", "")))
    with pytest.raises(ValidationError):
        state.modify(lambda m: m.add(Project("p1", "Again", "")))
    assert state.all() == [Project("p1", "One", "")]
