from __future__ import annotations

import dataclasses

import pytest

from tracker.core.errors import NotFoundError, ValidationError
from tracker.domain.models import (
    DEFAULT_ADMIN,
    FeaturePriority,
    FeatureState,
    Project,
    create_new_feature_right_now,
)
from tracker.repositories.feature_repository import FeatureRepository
from tracker.repositories.json_storage import MemoryStorage
from tracker.repositories.state import FeatureStateContainer

PROJECTS = {
    "p1": Project("p1", "One", ""),
    "p2": Project("p2", "Two", ""),
}


def _repo(storage):
    return FeatureRepository(
        FeatureStateContainer(storage),
        project_lookup=PROJECTS.get,
        user_lookup={DEFAULT_ADMIN.id: DEFAULT_ADMIN}.get,
    )


def _feature(project, name="feat", priority="low"):
    return create_new_feature_right_now(
        name=name, description="", priority=priority, owner=DEFAULT_ADMIN, project=project,
    )


@pytest.fixture()
def features(storage):
    return _repo(storage)


def test_project_features_filter_by_foreign_key(features):
    one, two = PROJECTS["p1"], PROJECTS["p2"]
    added = []
    for i, project in enumerate([one, two, one, two, one]):
        feature = _feature(project, name=f"f{i}")
        features.add_feature(feature)
        added.append(feature)

    got = features.get_project_features(one)
    assert {f.id for f in got} == {f.id for f in added if f.project_id == "p1"}
    assert all(f.project_id == "p1" for f in got)
    assert features.get_project_features(Project("p3", "Empty", "")) == []


def test_add_rejects_unknown_project_or_owner(features):
    with pytest.raises(NotFoundError):
        features.add_feature(_feature(Project("nope", "Ghost", "")))
    orphan = dataclasses.replace(_feature(PROJECTS["p1"]), owner_id="ghost")
    with pytest.raises(NotFoundError):
        features.add_feature(orphan)
    assert features.query_all() == []


def test_update_replaces_stored_feature_and_persists():
    storage = MemoryStorage()
    features = _repo(storage)
    feature = _feature(PROJECTS["p1"])
    features.add_feature(feature)

    features.update_feature(feature.with_state("done").with_priority("high"))

    reloaded = _repo(storage).get_feature(feature.id)
    assert reloaded.state is FeatureState.DONE
    assert reloaded.priority is FeaturePriority.HIGH


def test_any_state_is_reachable_from_any_other(features):
    feature = _feature(PROJECTS["p1"])
    features.add_feature(feature)
    for state in ["done", "todo", "in-progress", "done", "in-progress", "todo"]:
        assert features.change_state(feature.id, state).state is FeatureState.parse(state)
        assert features.get_feature(feature.id).state is FeatureState.parse(state)


def test_update_unknown_feature_fails(features):
    with pytest.raises(NotFoundError):
        features.update_feature(_feature(PROJECTS["p1"]))
    with pytest.raises(NotFoundError):
        features.change_priority("missing", "high")


def test_update_cannot_change_immutable_fields(features):
    feature = _feature(PROJECTS["p1"])
    features.add_feature(feature)
    moved = dataclasses.replace(feature, project_id="p2")
    with pytest.raises(ValidationError):
        features.update_feature(moved)
    assert features.get_feature(feature.id).project_id == "p1"


def test_invalid_state_is_rejected(features):
    feature = _feature(PROJECTS["p1"])
    features.add_feature(feature)
    with pytest.raises(ValidationError):
        features.change_state(feature.id, "blocked")
    assert features.get_feature(feature.id).state is FeatureState.TODO


def test_feature_hooks_fire_after_commit(features):
    events = []
    features.attach_event_hook("feature-added", lambda f: events.append(("added", f.id, len(features.query_all()))))
    features.attach_event_hook("feature-updated", lambda f: events.append(("updated", f.id, f.priority.value)))

    feature = _feature(PROJECTS["p1"])
    features.add_feature(feature)
    features.change_priority(feature.id, "medium")

    assert events == [("added", feature.id, 1), ("updated", feature.id, "medium")]


def test_adding_an_existing_id_is_rejected_and_rolled_back(storage):
    features = _repo(storage)
    added = []
    features.attach_event_hook("feature-added", added.append)
    feature = _feature(PROJECTS["p1"])
    features.add_feature(feature)

    with pytest.raises(ValidationError):
        features.add_feature(feature)
    features.change_state(feature.id, "done")

    assert [(f.id, f.state) for f in features.get_project_features(PROJECTS["p1"])] == [
        (feature.id, FeatureState.DONE)
    ]
    assert len(storage.get("feature-repository")["features"]) == 1
    assert added == [feature]
