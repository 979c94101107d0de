"""State repository tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from edgeplan.assets import AssetPlanner
from edgeplan.assets.models import AssetRecord, SyncPlan
from edgeplan.state import (
    AssetFingerprint,
    DeploymentState,
    MissingStateError,
    StateError,
    StateRepository,
    diff_plan,
)


def _record(key: str, digest: str, cache_control: str = "no-cache") -> AssetRecord:
    return AssetRecord(
        source_path=Path("/site") / key,
        relative_key=key,
        content_hash=digest,
        cache_control=cache_control,
        content_type="text/plain;charset=utf-8",
    )


def _plan(*records: AssetRecord) -> SyncPlan:
    return SyncPlan(root=Path("/site"), records=list(records))


def test_load_missing_state_raises(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)

    with pytest.raises(MissingStateError):
        repo.load("docs")
    assert repo.load_optional("docs") is None


def test_record_and_load_round_trip(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path / "deployments")
    plan = _plan(_record("a.txt", "1"), _record("b.txt", "2"))

    recorded = repo.record("docs", plan, "token-1")
    loaded = repo.load("docs")

    assert repo.path_for("docs") == tmp_path / "deployments" / "docs.json"
    assert loaded.version_token == "token-1"
    assert sorted(loaded.assets) == ["a.txt", "b.txt"]
    assert loaded.assets["b.txt"].content_hash == "2"
    assert loaded.created_at == recorded.created_at


def test_rerecording_keeps_creation_time(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)
    first = repo.record("docs", _plan(_record("a.txt", "1")), "t1")

    second = repo.record("docs", _plan(_record("a.txt", "2")), "t2")

    assert second.created_at == first.created_at
    assert repo.load("docs").version_token == "t2"


def test_corrupt_state_raises_state_error(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)
    repo.path_for("docs").write_text("{not json", encoding="utf-8")

    with pytest.raises(StateError):
        repo.load("docs")


@pytest.mark.parametrize("site", ["", "../escape", "a/b", ".hidden"])
def test_invalid_site_names_are_rejected(tmp_path: Path, site: str) -> None:
    with pytest.raises(StateError):
        StateRepository(tmp_path).path_for(site)


def _state(*records: AssetRecord) -> DeploymentState:
    return DeploymentState(
        site="docs",
        root="/site",
        assets={
            record.relative_key: AssetFingerprint(
                content_hash=record.content_hash,
                cache_control=record.cache_control,
                content_type=record.content_type,
            )
            for record in records
        },
    )


def test_diff_plan_groups_keys() -> None:
    state = _state(_record("same.txt", "1"), _record("edited.txt", "2"), _record("gone.txt", "3"))
    plan = _plan(
        _record("same.txt", "1"),
        _record("edited.txt", "22"),
        _record("new.txt", "4"),
    )

    diff = diff_plan(plan, state)

    assert diff.unchanged == ["same.txt"]
    assert diff.changed == ["edited.txt"]
    assert diff.added == ["new.txt"]
    assert diff.removed == ["gone.txt"]
    assert diff.has_changes


def test_header_change_counts_as_changed() -> None:
    state = _state(_record("a.txt", "1", cache_control="no-cache"))

    diff = diff_plan(_plan(_record("a.txt", "1", cache_control="immutable")), state)

    assert diff.changed == ["a.txt"]
    assert diff.has_changes


def test_identical_plan_has_no_changes() -> None:
    state = _state(_record("a.txt", "1"))

    assert not diff_plan(_plan(_record("a.txt", "1")), state).has_changes


def test_diff_without_state_marks_everything_added(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_text("x", encoding="utf-8")
    plan = AssetPlanner().plan(tmp_path)

    diff = diff_plan(plan, None)

    assert diff.added == ["index.html"]
    assert not diff.removed
