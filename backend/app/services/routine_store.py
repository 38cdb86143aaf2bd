from __future__ import annotations

from collections.abc import Iterator
from copy import deepcopy
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import CannotDeleteActiveVersion, VersionNotFound
from app.models.routine import RoutineVersion, SemesterRoutine
from app.schemas.routine import ClassDetail, class_from_snapshot, snapshot_of
from app.schemas.slots import DayOfWeek
from app.services.locks import semester_transaction

logger = logging.getLogger(__name__)

# weekday -> room number -> slot key -> class snapshot
RoutineGrid = dict[str, dict[str, dict[str, dict]]]


def get_cell(grid: RoutineGrid, weekday: DayOfWeek | str, room_number: str, slot_key: str) -> ClassDetail | None:
    value = grid.get(DayOfWeek(weekday).value, {}).get(room_number, {}).get(slot_key)
    return class_from_snapshot(value)


def with_cell(
    grid: RoutineGrid,
    weekday: DayOfWeek | str,
    room_number: str,
    slot_key: str,
    class_detail: ClassDetail | None,
) -> RoutineGrid:
    """Return a copy of ``grid`` with one cell set or cleared.

    Empty room and weekday maps are dropped so the grid stays sparse.
    """
    updated = deepcopy(grid)
    day = DayOfWeek(weekday).value
    if class_detail is not None:
        updated.setdefault(day, {}).setdefault(room_number, {})[slot_key] = snapshot_of(class_detail)
        return updated

    rooms = updated.get(day)
    if not rooms or room_number not in rooms:
        return updated
    rooms[room_number].pop(slot_key, None)
    if not rooms[room_number]:
        del rooms[room_number]
    if not rooms:
        del updated[day]
    return updated


def iter_cells(grid: RoutineGrid) -> Iterator[tuple[str, str, str, ClassDetail]]:
    for day, rooms in grid.items():
        for room_number, slots in rooms.items():
            for slot_key, value in slots.items():
                if value is not None:
                    yield day, room_number, slot_key, ClassDetail.model_validate(value)


def _next_version_label(db: Session, semester_id: str) -> str:
    labels = db.execute(
        select(RoutineVersion.label).where(RoutineVersion.semester_id == semester_id)
    ).scalars().all()
    numeric = []
    for label in labels:
        if not label.startswith("v"):
            continue
        suffix = label[1:]
        if suffix.isdigit():
            numeric.append(int(suffix))
    next_index = (max(numeric) + 1) if numeric else 1
    return f"v{next_index}"


def get_semester(db: Session, semester_id: str) -> SemesterRoutine | None:
    return db.get(SemesterRoutine, semester_id)


def ensure_semester(db: Session, semester_id: str, *, created_by_id: str | None = None) -> SemesterRoutine:
    """Create the semester's routine holder with one empty initial version."""
    record = db.get(SemesterRoutine, semester_id)
    if record is not None:
        return record
    record = SemesterRoutine(semester_id=semester_id)
    db.add(record)
    db.flush()
    version = RoutineVersion(
        semester_id=semester_id,
        label=_next_version_label(db, semester_id),
        routine={},
        created_by_id=created_by_id,
    )
    db.add(version)
    db.flush()
    record.active_version_id = version.id
    db.flush()
    logger.info("Initialized routine for semester %s (version %s)", semester_id, version.id)
    return record


def get_active_version(db: Session, semester_id: str) -> RoutineVersion | None:
    record = db.get(SemesterRoutine, semester_id)
    if record is None or record.active_version_id is None:
        return None
    return db.get(RoutineVersion, record.active_version_id)


def get_active_routine(db: Session, semester_id: str) -> RoutineGrid:
    version = get_active_version(db, semester_id)
    if version is None:
        return {}
    return deepcopy(version.routine or {})


def replace_active_routine(db: Session, semester_id: str, routine: RoutineGrid) -> RoutineVersion:
    """Store ``routine`` as the grid of the active version.

    The stored dict is replaced rather than mutated, so no other version or
    previously handed-out snapshot can observe the change.
    """
    ensure_semester(db, semester_id)
    version = get_active_version(db, semester_id)
    if version is None:
        commit_version(db, semester_id, routine)
        return get_active_version(db, semester_id)
    version.routine = deepcopy(routine)
    db.flush()
    return version


def commit_version(
    db: Session,
    semester_id: str,
    routine: RoutineGrid,
    *,
    created_by_id: str | None = None,
    label: str | None = None,
) -> str:
    record = db.get(SemesterRoutine, semester_id)
    if record is None:
        record = SemesterRoutine(semester_id=semester_id)
        db.add(record)
        db.flush()
    version = RoutineVersion(
        semester_id=semester_id,
        label=(label.strip() if label else _next_version_label(db, semester_id)),
        routine=deepcopy(routine),
        created_by_id=created_by_id,
    )
    db.add(version)
    db.flush()
    record.active_version_id = version.id
    db.flush()
    logger.info("Committed version %s (%s) for semester %s", version.label, version.id, semester_id)
    return version.id


def save_as_new_version(
    db: Session,
    semester_id: str,
    *,
    created_by_id: str | None = None,
    label: str | None = None,
) -> str:
    with semester_transaction(db, semester_id):
        return commit_version(
            db,
            semester_id,
            get_active_routine(db, semester_id),
            created_by_id=created_by_id,
            label=label,
        )


def _get_version(db: Session, semester_id: str, version_id: str) -> RoutineVersion:
    version = db.get(RoutineVersion, version_id)
    if version is None or version.semester_id != semester_id:
        raise VersionNotFound(semester_id, version_id)
    return version


def set_active(db: Session, semester_id: str, version_id: str) -> None:
    with semester_transaction(db, semester_id):
        version = _get_version(db, semester_id, version_id)
        record = ensure_semester(db, semester_id)
        record.active_version_id = version.id
        db.flush()


def delete_version(db: Session, semester_id: str, version_id: str) -> None:
    with semester_transaction(db, semester_id):
        record = db.get(SemesterRoutine, semester_id)
        if record is not None and record.active_version_id == version_id:
            raise CannotDeleteActiveVersion(semester_id, version_id)
        version = _get_version(db, semester_id, version_id)
        db.delete(version)
        db.flush()


def list_versions(db: Session, semester_id: str) -> list[RoutineVersion]:
    return list(
        db.execute(
            select(RoutineVersion)
            .where(RoutineVersion.semester_id == semester_id)
            .order_by(RoutineVersion.created_at.desc())
        ).scalars()
    )


def compare_versions(db: Session, semester_id: str, from_id: str, to_id: str) -> dict[str, int]:
    before = {
        (day, room, slot): detail
        for day, room, slot, detail in iter_cells(_get_version(db, semester_id, from_id).routine)
    }
    after = {
        (day, room, slot): detail
        for day, room, slot, detail in iter_cells(_get_version(db, semester_id, to_id).routine)
    }
    shared = before.keys() & after.keys()
    return {
        "added_cells": len(after.keys() - before.keys()),
        "removed_cells": len(before.keys() - after.keys()),
        "changed_cells": sum(1 for key in shared if before[key] != after[key]),
    }
