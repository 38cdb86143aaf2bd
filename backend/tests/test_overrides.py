from datetime import date

from app.models.override import ScheduleOverride
from app.services import overrides, routine_store

from conftest import MORNING, SEMESTER, cse101

SAT = date(2025, 3, 8)
NEXT_SAT = date(2025, 3, 15)


def _row_count(db) -> int:
    return db.query(ScheduleOverride).count()


def test_set_overrides_stores_only_deviations(db, world):
    overrides.set_overrides(db, "KT-101", MORNING, {SAT: cse101("B"), NEXT_SAT: cse101()}, cse101())
    assert overrides.get_overrides(db, "KT-101", MORNING) == {SAT: cse101("B")}
    assert _row_count(db) == 1


def test_set_overrides_merges_and_drops_reverted_dates(db, world):
    overrides.set_overrides(db, "KT-101", MORNING, {SAT: cse101("B"), NEXT_SAT: None}, cse101())
    overrides.set_overrides(db, "KT-101", MORNING, {SAT: cse101()}, cse101())

    assert overrides.get_overrides(db, "KT-101", MORNING) == {NEXT_SAT: None}
    assert overrides.get_override_map(db) == {"KT-101": {MORNING: {NEXT_SAT.isoformat(): None}}}


def test_remove_and_book_override(db, world):
    overrides.book_override(db, "KT-102", MORNING, SAT, cse101(), updated_by_id=world.admin.id)
    assert overrides.get_overrides(db, "KT-102", MORNING) == {SAT: cse101()}
    assert overrides.remove_override(db, "KT-102", MORNING, SAT) is True
    assert overrides.remove_override(db, "KT-102", MORNING, SAT) is False
    assert overrides.get_overrides(db, "KT-102", MORNING) == {}


def test_is_locked_only_by_booked_classes():
    override_map = {"KT-101": {MORNING: {SAT.isoformat(): cse101().snapshot(), NEXT_SAT.isoformat(): None}}}
    assert overrides.is_locked(override_map, "KT-101", MORNING, [SAT, NEXT_SAT])
    assert not overrides.is_locked(override_map, "KT-101", MORNING, [NEXT_SAT])
    assert not overrides.is_locked(override_map, "KT-101", MORNING, [date(2025, 3, 22)])
    assert not overrides.is_locked(override_map, "KT-102", MORNING, [SAT])


def test_materialize_date_applies_overrides_over_the_template(db, world):
    grid = routine_store.with_cell({}, "Saturday", "KT-101", MORNING, cse101())
    grid = routine_store.with_cell(grid, "Saturday", "KT-102", MORNING, cse101("B"))
    routine_store.replace_active_routine(db, SEMESTER, grid)
    overrides.set_overrides(db, "KT-101", MORNING, {SAT: None}, cse101())
    overrides.set_overrides(db, "GEN-1", MORNING, {SAT: cse101("C")}, None)

    cells = overrides.materialize_date(db, SEMESTER, SAT)
    assert cells == [
        ("GEN-1", MORNING, cse101("C"), True),
        ("KT-101", MORNING, None, True),
        ("KT-102", MORNING, cse101("B"), False),
    ]
    assert overrides.effective_class(db, SEMESTER, "KT-101", MORNING, SAT) is None
    assert overrides.effective_class(db, SEMESTER, "KT-101", MORNING, NEXT_SAT) == cse101()
