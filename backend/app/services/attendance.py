from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateAttendanceEntry, ResourceNotFoundError
from app.models.attendance import AttendanceLogEntry
from app.models.directory import Section
from app.schemas.actor import ActorProfile
from app.schemas.attendance import AttendanceIn, MakeupIn
from app.schemas.routine import class_from_section
from app.services.locks import known_semester_ids, semester_transaction, semesters_transaction
from app.services.overrides import book_override, remove_override

logger = logging.getLogger(__name__)


def _makeup_of(entry: AttendanceLogEntry) -> MakeupIn | None:
    if entry.makeup_date is None or not entry.makeup_slot_key or not entry.makeup_room_number:
        return None
    return MakeupIn(date=entry.makeup_date, slot_key=entry.makeup_slot_key, room_number=entry.makeup_room_number)


def _release(db: Session, entry: AttendanceLogEntry, makeup: MakeupIn) -> bool:
    # an approver may have since replaced the booked class
    return remove_override(
        db,
        makeup.room_number,
        makeup.slot_key,
        makeup.date,
        section_identity=(entry.p_id, entry.course_code, entry.section),
    )


def _book(db: Session, payload: AttendanceIn, actor: ActorProfile) -> None:
    makeup = payload.makeup
    section = db.execute(
        select(Section).where(
            Section.semester_id == payload.semester_id,
            Section.p_id == payload.p_id,
            Section.course_code == payload.course_code,
            Section.section == payload.section,
        )
    ).scalar_one_or_none()
    if section is None:
        logger.warning(
            "No catalog section for %s %s; make-up on %s not booked",
            payload.course_code,
            payload.section,
            makeup.date,
        )
        return
    book_override(
        db,
        makeup.room_number,
        makeup.slot_key,
        makeup.date,
        class_from_section(section),
        updated_by_id=actor.id,
    )


def list_attendance(db: Session, *, semester_id: str | None = None) -> list[AttendanceLogEntry]:
    query = select(AttendanceLogEntry).order_by(AttendanceLogEntry.created_at.desc())
    if semester_id:
        query = query.where(AttendanceLogEntry.semester_id == semester_id)
    return list(db.execute(query).scalars())


def get_attendance(db: Session, entry_id: str) -> AttendanceLogEntry:
    entry = db.get(AttendanceLogEntry, entry_id)
    if entry is None:
        raise ResourceNotFoundError("Attendance entry", entry_id)
    return entry


def save_attendance(
    db: Session,
    actor: ActorProfile,
    payload: AttendanceIn,
    *,
    entry_id: str | None = None,
) -> AttendanceLogEntry:
    """Create or update one attendance record and keep its make-up booking in sync.

    A make-up books the section's class as an override on the make-up date.
    Moving or dropping the make-up releases the previously booked override.
    """
    with semester_transaction(db, payload.semester_id):
        previous: MakeupIn | None = None
        if entry_id is not None:
            entry = get_attendance(db, entry_id)
            previous = _makeup_of(entry)
            if previous is not None and previous != payload.makeup:
                _release(db, entry, previous)
        else:
            duplicate = db.execute(
                select(AttendanceLogEntry.id).where(
                    AttendanceLogEntry.class_date == payload.class_date,
                    AttendanceLogEntry.slot_key == payload.slot_key,
                    AttendanceLogEntry.room_number == payload.room_number,
                    AttendanceLogEntry.course_code == payload.course_code,
                )
            ).first()
            if duplicate is not None:
                raise DuplicateAttendanceEntry(
                    {
                        "class_date": payload.class_date.isoformat(),
                        "slot_key": payload.slot_key,
                        "room_number": payload.room_number,
                        "course_code": payload.course_code,
                    }
                )
            entry = AttendanceLogEntry(logged_by_id=actor.id)

        values = payload.model_dump(exclude={"makeup"})
        for field, value in values.items():
            setattr(entry, field, value)
        entry.makeup_date = payload.makeup.date if payload.makeup else None
        entry.makeup_slot_key = payload.makeup.slot_key if payload.makeup else None
        entry.makeup_room_number = payload.makeup.room_number if payload.makeup else None
        db.add(entry)

        if payload.makeup is not None and payload.makeup != previous:
            _book(db, payload, actor)
        db.flush()
        return entry


def delete_attendance(db: Session, entry_id: str) -> None:
    entry = get_attendance(db, entry_id)
    with semester_transaction(db, entry.semester_id):
        makeup = _makeup_of(entry)
        if makeup is not None:
            _release(db, entry, makeup)
        db.delete(entry)


def toggle_makeup_completed(db: Session, entry_id: str) -> AttendanceLogEntry:
    entry = get_attendance(db, entry_id)
    entry.makeup_completed = not entry.makeup_completed
    db.flush()
    return entry


def release_makeup_overrides(db: Session) -> int:
    """Remove every override booked for a logged make-up; the records forget their make-up."""
    removed = 0
    for entry in db.execute(select(AttendanceLogEntry)).scalars():
        makeup = _makeup_of(entry)
        if makeup is None:
            continue
        if _release(db, entry, makeup):
            removed += 1
        entry.makeup_date = None
        entry.makeup_slot_key = None
        entry.makeup_room_number = None
        entry.makeup_completed = False
    db.flush()
    return removed


def clear_attendance(db: Session) -> tuple[int, int]:
    with semesters_transaction(db, known_semester_ids(db)):
        overrides_removed = release_makeup_overrides(db)
        entries_removed = db.execute(delete(AttendanceLogEntry)).rowcount or 0
    logger.info("Attendance log cleared (%d entries, %d make-up overrides)", entries_removed, overrides_removed)
    return entries_removed, overrides_removed
