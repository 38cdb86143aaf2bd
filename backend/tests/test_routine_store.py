import pytest

from app.core.exceptions import CannotDeleteActiveVersion, VersionNotFound
from app.models.routine import RoutineVersion
from app.services import routine_store
from app.services.locks import known_semester_ids, semester_transaction, semesters_transaction

from conftest import MORNING, SEMESTER, cse101


def test_with_cell_returns_a_sparse_copy():
    grid = {}
    filled = routine_store.with_cell(grid, "Saturday", "KT-101", MORNING, cse101())
    assert grid == {}
    assert routine_store.get_cell(filled, "Saturday", "KT-101", MORNING) == cse101()

    cleared = routine_store.with_cell(filled, "Saturday", "KT-101", MORNING, None)
    assert cleared == {}
    assert routine_store.get_cell(filled, "Saturday", "KT-101", MORNING) == cse101()


def test_ensure_semester_creates_one_empty_active_version(db, world):
    record = routine_store.ensure_semester(db, SEMESTER)
    versions = routine_store.list_versions(db, SEMESTER)
    assert len(versions) == 1
    assert record.active_version_id == versions[0].id
    assert versions[0].label == "v1"
    assert routine_store.get_active_routine(db, SEMESTER) == {}


def test_save_as_new_version_leaves_the_previous_grid_untouched(db, world):
    first_id = routine_store.get_active_version(db, SEMESTER).id
    routine_store.replace_active_routine(
        db, SEMESTER, routine_store.with_cell({}, "Saturday", "KT-101", MORNING, cse101())
    )
    second_id = routine_store.save_as_new_version(db, SEMESTER, created_by_id=world.admin.id)
    assert second_id != first_id
    assert routine_store.get_active_version(db, SEMESTER).label == "v2"

    grid = routine_store.get_active_routine(db, SEMESTER)
    routine_store.replace_active_routine(
        db, SEMESTER, routine_store.with_cell(grid, "Saturday", "KT-101", MORNING, cse101("B"))
    )
    db.commit()

    first = db.get(RoutineVersion, first_id)
    assert routine_store.get_cell(first.routine, "Saturday", "KT-101", MORNING) == cse101()
    assert routine_store.get_cell(routine_store.get_active_routine(db, SEMESTER), "Saturday", "KT-101", MORNING) == (
        cse101("B")
    )


def test_active_routine_is_a_detached_copy(db, world):
    routine_store.replace_active_routine(
        db, SEMESTER, routine_store.with_cell({}, "Sunday", "KT-102", MORNING, cse101())
    )
    grid = routine_store.get_active_routine(db, SEMESTER)
    grid["Sunday"]["KT-102"].clear()
    assert routine_store.get_cell(routine_store.get_active_routine(db, SEMESTER), "Sunday", "KT-102", MORNING)


def test_delete_guard_protects_the_active_version(db, world):
    first_id = routine_store.get_active_version(db, SEMESTER).id
    with pytest.raises(CannotDeleteActiveVersion):
        routine_store.delete_version(db, SEMESTER, first_id)

    second_id = routine_store.save_as_new_version(db, SEMESTER)
    routine_store.delete_version(db, SEMESTER, first_id)
    assert [item.id for item in routine_store.list_versions(db, SEMESTER)] == [second_id]

    with pytest.raises(VersionNotFound):
        routine_store.set_active(db, SEMESTER, first_id)


def test_set_active_and_compare_versions(db, world):
    empty_id = routine_store.get_active_version(db, SEMESTER).id
    grid = routine_store.with_cell({}, "Saturday", "KT-101", MORNING, cse101())
    grid = routine_store.with_cell(grid, "Sunday", "KT-101", MORNING, cse101("B"))
    filled_id = routine_store.commit_version(db, SEMESTER, grid, label="draft")

    changed = routine_store.with_cell(grid, "Sunday", "KT-101", MORNING, cse101("C"))
    changed = routine_store.with_cell(changed, "Saturday", "KT-101", MORNING, None)
    changed_id = routine_store.commit_version(db, SEMESTER, changed)

    assert routine_store.compare_versions(db, SEMESTER, empty_id, filled_id) == {
        "added_cells": 2,
        "removed_cells": 0,
        "changed_cells": 0,
    }
    assert routine_store.compare_versions(db, SEMESTER, filled_id, changed_id) == {
        "added_cells": 0,
        "removed_cells": 1,
        "changed_cells": 1,
    }

    routine_store.set_active(db, SEMESTER, filled_id)
    assert routine_store.get_active_version(db, SEMESTER).label == "draft"


def test_version_writers_commit_on_their_own(db, world, session_factory):
    version_id = routine_store.save_as_new_version(db, SEMESTER, label="draft")
    routine_store.set_active(db, SEMESTER, version_id)

    other = session_factory()
    try:
        assert other.get(RoutineVersion, version_id).label == "draft"
        assert routine_store.get_active_version(other, SEMESTER).id == version_id
    finally:
        other.close()


def test_version_writers_join_an_enclosing_semester_transaction(db, world):
    with pytest.raises(RuntimeError):
        with semester_transaction(db, SEMESTER):
            routine_store.save_as_new_version(db, SEMESTER, label="discarded")
            raise RuntimeError("abort")

    assert [version.label for version in routine_store.list_versions(db, SEMESTER)] == ["v1"]


def test_semesters_transaction_commits_once_across_semesters(db, world, session_factory):
    routine_store.ensure_semester(db, "Fall 2025")
    db.commit()
    assert sorted(known_semester_ids(db)) == ["Fall 2025", SEMESTER]

    with pytest.raises(RuntimeError):
        with semesters_transaction(db, known_semester_ids(db)):
            routine_store.save_as_new_version(db, SEMESTER, label="spring draft")
            routine_store.save_as_new_version(db, "Fall 2025", label="fall draft")
            raise RuntimeError("abort")

    other = session_factory()
    try:
        labels = {version.label for version in other.query(RoutineVersion)}
        assert labels == {"v1"}
    finally:
        other.close()
