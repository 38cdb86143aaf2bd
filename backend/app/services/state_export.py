"""Whole-state snapshot of the four routine aggregates.

Used for backups and for moving a routine between deployments. Import
replaces the aggregates wholesale; reference data is left alone.
"""
from __future__ import annotations

from datetime import date
import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.override import ScheduleOverride
from app.models.pending_change import PendingChange
from app.models.routine import RoutineVersion, SemesterRoutine
from app.models.schedule_log import ScheduleLogEntry
from app.schemas.actor import ActorProfile
from app.schemas.state import (
    LogEntryState,
    PendingChangeState,
    PersistedState,
    SemesterState,
    StateImportOut,
    VersionState,
)
from app.services.audit import log_activity
from app.services.locks import known_semester_ids, semesters_transaction
from app.services.overrides import get_override_map

logger = logging.getLogger(__name__)


def export_state(db: Session) -> PersistedState:
    routines: dict[str, SemesterState] = {}
    for record in db.execute(select(SemesterRoutine).order_by(SemesterRoutine.semester_id)).scalars():
        versions = db.execute(
            select(RoutineVersion)
            .where(RoutineVersion.semester_id == record.semester_id)
            .order_by(RoutineVersion.created_at)
        ).scalars()
        routines[record.semester_id] = SemesterState(
            active_version_id=record.active_version_id,
            versions=[
                VersionState(
                    version_id=version.id,
                    label=version.label,
                    created_at=version.created_at,
                    created_by_id=version.created_by_id,
                    routine=version.routine or {},
                )
                for version in versions
            ],
        )

    audit_log = [
        LogEntryState(
            log_id=entry.id,
            timestamp=entry.created_at,
            actor_id=entry.actor_id,
            actor_name=entry.actor_name,
            semester_id=entry.semester_id,
            room_number=entry.room_number,
            slot_key=entry.slot_key,
            weekday=entry.weekday,
            is_override=entry.is_override,
            override_date=entry.override_date,
            from_class=entry.from_class,
            to_class=entry.to_class,
        )
        for entry in db.execute(select(ScheduleLogEntry).order_by(ScheduleLogEntry.id)).scalars()
    ]

    pending = [
        PendingChangeState(
            id=change.id,
            requester_id=change.requester_id,
            requester_name=change.requester_name,
            kind=change.kind,
            status=change.status,
            timestamp=change.created_at,
            semester_id=change.semester_id,
            room_number=change.room_number,
            slot_key=change.slot_key,
            weekday=change.weekday,
            requested_class=change.requested_class,
            is_bulk_update=change.is_bulk_update,
            dates=change.dates,
            source=change.source,
        )
        for change in db.execute(select(PendingChange).order_by(PendingChange.created_at)).scalars()
    ]

    return PersistedState(
        routines_by_semester=routines,
        overrides_by_room_slot=get_override_map(db),
        audit_log=audit_log,
        pending_changes=pending,
    )


def import_state(db: Session, state: PersistedState, *, actor: ActorProfile) -> StateImportOut:
    """Replace every routine aggregate with ``state`` under every affected semester lock."""
    with semesters_transaction(db, [*known_semester_ids(db), *state.routines_by_semester]):
        return _replace_aggregates(db, state, actor=actor)


def _replace_aggregates(db: Session, state: PersistedState, *, actor: ActorProfile) -> StateImportOut:
    for model in (PendingChange, ScheduleLogEntry, ScheduleOverride, RoutineVersion, SemesterRoutine):
        db.execute(delete(model))
    db.flush()

    version_count = 0
    for semester_id, semester in state.routines_by_semester.items():
        db.add(SemesterRoutine(semester_id=semester_id, active_version_id=semester.active_version_id))
        db.flush()
        for version in semester.versions:
            db.add(
                RoutineVersion(
                    id=version.version_id,
                    semester_id=semester_id,
                    label=version.label,
                    routine=version.routine,
                    created_by_id=version.created_by_id,
                    created_at=version.created_at,
                )
            )
            version_count += 1

    override_count = 0
    for room_number, slots in state.overrides_by_room_slot.items():
        for slot_key, by_date in slots.items():
            for iso_date, class_detail in by_date.items():
                db.add(
                    ScheduleOverride(
                        room_number=room_number,
                        slot_key=slot_key,
                        override_date=date.fromisoformat(iso_date),
                        class_detail=class_detail,
                        updated_by_id=actor.id,
                    )
                )
                override_count += 1

    for entry in state.audit_log:
        db.add(
            ScheduleLogEntry(
                id=entry.log_id,
                created_at=entry.timestamp,
                actor_id=entry.actor_id,
                actor_name=entry.actor_name,
                semester_id=entry.semester_id,
                room_number=entry.room_number,
                slot_key=entry.slot_key,
                weekday=entry.weekday.value,
                is_override=entry.is_override,
                override_date=entry.override_date,
                from_class=entry.from_class,
                to_class=entry.to_class,
            )
        )

    for change in state.pending_changes:
        db.add(
            PendingChange(
                id=change.id,
                requester_id=change.requester_id,
                requester_name=change.requester_name,
                kind=change.kind,
                status=change.status,
                created_at=change.timestamp,
                semester_id=change.semester_id,
                room_number=change.room_number,
                slot_key=change.slot_key,
                weekday=change.weekday.value,
                requested_class=change.requested_class,
                is_bulk_update=change.is_bulk_update,
                dates=change.dates,
                source=change.source,
            )
        )
    db.flush()

    result = StateImportOut(
        semesters=len(state.routines_by_semester),
        versions=version_count,
        overrides=override_count,
        log_entries=len(state.audit_log),
        pending_changes=len(state.pending_changes),
    )
    log_activity(db, user=actor, action="system.state_import", entity_type="system", details=result.model_dump())
    logger.info("Imported routine state: %s", result.model_dump())
    return result
