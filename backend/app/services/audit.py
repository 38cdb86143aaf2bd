from __future__ import annotations

from datetime import date, datetime, time, timezone
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.models.schedule_log import ScheduleLogEntry
from app.schemas.actor import ActorProfile
from app.schemas.routine import ClassDetail, snapshot_of
from app.schemas.slots import DayOfWeek
from app.services.attendance import release_makeup_overrides
from app.services.locks import known_semester_ids, semesters_transaction

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    user: ActorProfile | None,
    action: str,
    semester_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        semester_id=semester_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)


def record_change(
    db: Session,
    *,
    actor: ActorProfile,
    semester_id: str,
    weekday: DayOfWeek | str,
    room_number: str,
    slot_key: str,
    from_class: ClassDetail | None,
    to_class: ClassDetail | None,
    override_date: date | None = None,
    timestamp: datetime | None = None,
) -> ScheduleLogEntry | None:
    """Append one before/after entry; nothing is written when the cell is unchanged."""
    if from_class == to_class:
        return None
    entry = ScheduleLogEntry(
        created_at=timestamp or datetime.now(timezone.utc),
        actor_id=actor.id,
        actor_name=actor.name,
        semester_id=semester_id,
        room_number=room_number,
        slot_key=slot_key,
        weekday=DayOfWeek(weekday).value,
        is_override=override_date is not None,
        override_date=override_date,
        from_class=snapshot_of(from_class),
        to_class=snapshot_of(to_class),
    )
    db.add(entry)
    db.flush()
    return entry


def query_log(
    db: Session,
    *,
    semester_id: str | None = None,
    room_number: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list[ScheduleLogEntry]]:
    query = select(ScheduleLogEntry)
    if semester_id:
        query = query.where(ScheduleLogEntry.semester_id == semester_id)
    if room_number:
        query = query.where(ScheduleLogEntry.room_number == room_number)
    if date_from is not None:
        query = query.where(
            ScheduleLogEntry.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc)
        )
    if date_to is not None:
        query = query.where(
            ScheduleLogEntry.created_at <= datetime.combine(date_to, time.max, tzinfo=timezone.utc)
        )

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    items = list(
        db.execute(query.order_by(ScheduleLogEntry.id.desc()).offset(offset).limit(limit)).scalars()
    )
    return total, items


def clear_log(db: Session, *, actor: ActorProfile) -> tuple[int, int]:
    """Drop every log entry together with the make-up bookings they account for.

    Returns ``(entries_removed, overrides_removed)``. Holds every semester lock
    and commits.
    """
    with semesters_transaction(db, known_semester_ids(db)):
        overrides_removed = release_makeup_overrides(db)
        entries_removed = db.execute(delete(ScheduleLogEntry)).rowcount or 0
        log_activity(
            db,
            user=actor,
            action="schedule_log.clear",
            entity_type="schedule_log",
            details={"entries_removed": entries_removed, "overrides_removed": overrides_removed},
        )
    logger.info(
        "Schedule log cleared by %s (%d entries, %d make-up overrides)",
        actor.id,
        entries_removed,
        overrides_removed,
    )
    return entries_removed, overrides_removed
