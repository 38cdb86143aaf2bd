from datetime import date

from pydantic import ValidationError
import pytest
from sqlalchemy.exc import IntegrityError

from app.models.activity_log import ActivityLog
from app.schemas.state import PersistedState
from app.services import routine_store
from app.services.mutation_router import request_override_change, request_template_change
from app.services.state_export import export_state, import_state

from conftest import MORNING, SEMESTER, cse101


def _seed_history(db, world):
    request_template_change(db, world.admin_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    routine_store.save_as_new_version(db, SEMESTER, label="published")
    db.commit()
    request_override_change(db, world.admin_actor, SEMESTER, "KT-101", MORNING, {date(2025, 3, 8): None}, cse101())
    request_template_change(db, world.requester_actor, SEMESTER, "Sunday", "KT-102", MORNING, cse101("B"))


def test_export_uses_the_persisted_key_names(db, world):
    _seed_history(db, world)
    payload = export_state(db).model_dump(mode="json", by_alias=True)

    assert set(payload) == {"routinesBySemester", "overridesByRoomSlot", "auditLog", "pendingChanges"}
    semester = payload["routinesBySemester"][SEMESTER]
    assert len(semester["versions"]) == 2
    assert semester["activeVersionId"] == semester["versions"][-1]["versionId"]
    assert payload["overridesByRoomSlot"] == {"KT-101": {MORNING: {"2025-03-08": None}}}

    override_entry = payload["auditLog"][-1]
    assert override_entry["isOverride"] is True
    assert override_entry["date"] == "2025-03-08"
    assert override_entry["to"] is None
    assert payload["pendingChanges"][0]["isBulkUpdate"] is True
    assert payload["pendingChanges"][0]["requestedClassInfo"]["section"] == "B"


def test_import_restores_an_exported_state(db, world):
    _seed_history(db, world)
    exported = export_state(db).model_dump(mode="json", by_alias=True)

    request_template_change(db, world.admin_actor, SEMESTER, "Monday", "KT-101", MORNING, cse101("Z"))
    routine_store.save_as_new_version(db, SEMESTER)
    db.commit()

    result = import_state(db, PersistedState.model_validate(exported), actor=world.admin_actor)
    db.commit()

    assert result.semesters == 1
    assert result.versions == 2
    assert result.overrides == 1
    assert result.log_entries == 2
    assert result.pending_changes == 1
    assert export_state(db).model_dump(mode="json", by_alias=True) == exported
    assert db.query(ActivityLog).filter(ActivityLog.action == "system.state_import").count() == 1


def _exported(db, world) -> dict:
    _seed_history(db, world)
    return export_state(db).model_dump(mode="json", by_alias=True)


def test_import_rejects_a_dangling_active_version(db, world):
    payload = _exported(db, world)
    payload["routinesBySemester"][SEMESTER]["activeVersionId"] = "missing-version"

    with pytest.raises(ValidationError, match="not one of the semester's versions"):
        PersistedState.model_validate(payload)


def test_import_requires_an_active_version_when_versions_exist(db, world):
    payload = _exported(db, world)
    payload["routinesBySemester"][SEMESTER]["activeVersionId"] = None

    with pytest.raises(ValidationError, match="activeVersionId is required"):
        PersistedState.model_validate(payload)


@pytest.mark.parametrize(
    "corrupt",
    [
        lambda payload: payload["routinesBySemester"][SEMESTER]["versions"][-1]["routine"].update(
            {"Funday": {}}
        ),
        lambda payload: payload["routinesBySemester"][SEMESTER]["versions"][-1]["routine"]["Saturday"][
            "KT-101"
        ].update({"25:00 - 26:00": None}),
        lambda payload: payload["overridesByRoomSlot"]["KT-101"].update({"morning": {}}),
        lambda payload: payload["overridesByRoomSlot"]["KT-101"][MORNING].update({"08/03/2025": None}),
        lambda payload: payload["auditLog"][0].update({"slotKey": "later"}),
        lambda payload: payload["pendingChanges"][0].update({"weekday": "Someday"}),
    ],
)
def test_import_rejects_malformed_keys(db, world, corrupt):
    payload = _exported(db, world)
    corrupt(payload)

    with pytest.raises(ValidationError):
        PersistedState.model_validate(payload)


def test_failed_import_leaves_the_stored_state(db, world, session_factory):
    payload = _exported(db, world)
    payload["routinesBySemester"]["Fall 2025"] = {"activeVersionId": None, "versions": []}
    # two log entries sharing an id collide on insert
    payload["auditLog"].append(dict(payload["auditLog"][0]))
    state = PersistedState.model_validate(payload)

    with pytest.raises(IntegrityError):
        import_state(db, state, actor=world.admin_actor)

    other = session_factory()
    try:
        restored = export_state(other).model_dump(mode="json", by_alias=True)
        assert set(restored["routinesBySemester"]) == {SEMESTER}
        assert len(restored["auditLog"]) == 2
    finally:
        other.close()
