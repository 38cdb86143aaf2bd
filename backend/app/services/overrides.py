from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.override import ScheduleOverride
from app.schemas.routine import ClassDetail, class_from_snapshot, snapshot_of
from app.schemas.slots import weekday_of
from app.services.routine_store import get_active_routine, get_cell

logger = logging.getLogger(__name__)

# room number -> slot key -> ISO date -> class snapshot (None forces the slot empty)
OverrideMap = dict[str, dict[str, dict[str, dict | None]]]


def _as_date(value: date | str) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value)


def _rows_for(db: Session, room_number: str, slot_key: str) -> dict[date, ScheduleOverride]:
    rows = db.execute(
        select(ScheduleOverride).where(
            ScheduleOverride.room_number == room_number,
            ScheduleOverride.slot_key == slot_key,
        )
    ).scalars()
    return {row.override_date: row for row in rows}


def get_overrides(db: Session, room_number: str, slot_key: str) -> dict[date, ClassDetail | None]:
    return {
        override_date: class_from_snapshot(row.class_detail)
        for override_date, row in sorted(_rows_for(db, room_number, slot_key).items())
    }


def get_override_map(db: Session) -> OverrideMap:
    result: OverrideMap = {}
    rows = db.execute(
        select(ScheduleOverride).order_by(
            ScheduleOverride.room_number, ScheduleOverride.slot_key, ScheduleOverride.override_date
        )
    ).scalars()
    for row in rows:
        result.setdefault(row.room_number, {}).setdefault(row.slot_key, {})[
            row.override_date.isoformat()
        ] = row.class_detail
    return result


def set_overrides(
    db: Session,
    room_number: str,
    slot_key: str,
    assignments: Mapping[date | str, ClassDetail | None],
    default_for_slot: ClassDetail | None,
    *,
    updated_by_id: str | None = None,
) -> None:
    """Merge ``assignments`` into the overrides of one room and slot.

    Any resulting entry equal to ``default_for_slot`` is dropped, so a stored
    row always records a real deviation from the template.
    """
    existing = _rows_for(db, room_number, slot_key)
    merged: dict[date, ClassDetail | None] = {
        override_date: class_from_snapshot(row.class_detail) for override_date, row in existing.items()
    }
    merged.update({_as_date(key): value for key, value in assignments.items()})

    for override_date, value in merged.items():
        row = existing.get(override_date)
        if value == default_for_slot:
            if row is not None:
                db.delete(row)
            continue
        if row is None:
            db.add(
                ScheduleOverride(
                    room_number=room_number,
                    slot_key=slot_key,
                    override_date=override_date,
                    class_detail=snapshot_of(value),
                    updated_by_id=updated_by_id,
                )
            )
        elif class_from_snapshot(row.class_detail) != value:
            row.class_detail = snapshot_of(value)
            row.updated_by_id = updated_by_id
    db.flush()


def remove_override(
    db: Session,
    room_number: str,
    slot_key: str,
    override_date: date,
    *,
    section_identity: tuple[str | None, str, str] | None = None,
) -> bool:
    """Delete one entry. With ``section_identity``, only an entry still holding that section is deleted."""
    row = _rows_for(db, room_number, slot_key).get(override_date)
    if row is None:
        return False
    if section_identity is not None:
        booked = class_from_snapshot(row.class_detail)
        if booked is None or booked.section_identity != section_identity:
            return False
    db.delete(row)
    db.flush()
    return True


def book_override(
    db: Session,
    room_number: str,
    slot_key: str,
    override_date: date,
    class_detail: ClassDetail | None,
    *,
    updated_by_id: str | None = None,
) -> None:
    """Store one entry as-is, without comparing it to the template."""
    row = _rows_for(db, room_number, slot_key).get(override_date)
    if row is None:
        db.add(
            ScheduleOverride(
                room_number=room_number,
                slot_key=slot_key,
                override_date=override_date,
                class_detail=snapshot_of(class_detail),
                updated_by_id=updated_by_id,
            )
        )
    else:
        row.class_detail = snapshot_of(class_detail)
        row.updated_by_id = updated_by_id
    db.flush()


def is_locked(overrides: OverrideMap, room_number: str, slot_key: str, dates: Iterable[date]) -> bool:
    by_date = overrides.get(room_number, {}).get(slot_key)
    if not by_date:
        return False
    # a cancellation (None) leaves the slot free
    return any(by_date.get(item.isoformat()) is not None for item in dates)


def materialize_date(db: Session, semester_id: str, target_date: date) -> list[tuple[str, str, ClassDetail | None, bool]]:
    """Cells shown on ``target_date``: (room, slot, class, from_override).

    Overridden cells win over the template; a ``None`` override hides the
    template class for that date only.
    """
    weekday = weekday_of(target_date)
    grid = get_active_routine(db, semester_id)
    cells: dict[tuple[str, str], tuple[ClassDetail | None, bool]] = {}
    for room_number, slots in grid.get(weekday.value, {}).items():
        for slot_key in slots:
            cells[(room_number, slot_key)] = (get_cell(grid, weekday, room_number, slot_key), False)

    rows = db.execute(select(ScheduleOverride).where(ScheduleOverride.override_date == target_date)).scalars()
    for row in rows:
        cells[(row.room_number, row.slot_key)] = (class_from_snapshot(row.class_detail), True)

    return [
        (room_number, slot_key, detail, from_override)
        for (room_number, slot_key), (detail, from_override) in sorted(cells.items())
    ]


def effective_class(
    db: Session,
    semester_id: str,
    room_number: str,
    slot_key: str,
    target_date: date,
) -> ClassDetail | None:
    overrides = get_overrides(db, room_number, slot_key)
    if target_date in overrides:
        return overrides[target_date]
    return get_cell(get_active_routine(db, semester_id), weekday_of(target_date), room_number, slot_key)
