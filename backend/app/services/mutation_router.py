"""Permission gate in front of the weekly template and the override layer.

Approvers write straight through (one log entry per changed cell); everyone
else gets a pending change that an approver replays later with ``force=True``.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import RoomNotFound, ResourceNotFoundError, TargetOccupied
from app.models.directory import Room, Section
from app.models.pending_change import PendingChange, PendingChangeKind
from app.models.schedule_log import ScheduleLogEntry
from app.schemas.actor import ActorProfile
from app.schemas.routine import CellRef, ClassDetail, class_from_section, snapshot_of
from app.schemas.slots import DayOfWeek, weekday_of
from app.services.audit import record_change
from app.services.locks import semester_transaction
from app.services.overrides import get_overrides, set_overrides
from app.services.routine_store import get_active_routine, get_cell, replace_active_routine, with_cell

logger = logging.getLogger(__name__)


class MutationStatus(str, Enum):
    applied = "applied"
    pending = "pending"
    unchanged = "unchanged"


@dataclass
class MutationOutcome:
    status: MutationStatus
    log_entries: list[ScheduleLogEntry] = field(default_factory=list)
    pending_changes: list[PendingChange] = field(default_factory=list)

    @property
    def log_entry_ids(self) -> list[int]:
        return [entry.id for entry in self.log_entries]

    @property
    def pending_change_ids(self) -> list[str]:
        return [change.id for change in self.pending_changes]


def _enqueue(db: Session, actor: ActorProfile, **values) -> PendingChange:
    change = PendingChange(requester_id=actor.id, requester_name=actor.name, **values)
    db.add(change)
    db.flush()
    logger.info(
        "Queued %s change %s for %s / %s from %s",
        change.kind.value,
        change.id,
        change.room_number,
        change.slot_key,
        actor.id,
    )
    return change


def get_room(db: Session, semester_id: str, room_number: str) -> Room:
    room = db.execute(
        select(Room).where(Room.semester_id == semester_id, Room.room_number == room_number)
    ).scalar_one_or_none()
    if room is None:
        raise RoomNotFound(room_number, semester_id)
    return room


def request_template_change(
    db: Session,
    actor: ActorProfile,
    semester_id: str,
    weekday: DayOfWeek | str,
    room_number: str,
    slot_key: str,
    new_class: ClassDetail | None,
    *,
    force: bool = False,
) -> MutationOutcome:
    weekday = DayOfWeek(weekday)
    with semester_transaction(db, semester_id):
        if not (force or actor.can_approve):
            change = _enqueue(
                db,
                actor,
                kind=PendingChangeKind.bulk,
                semester_id=semester_id,
                room_number=room_number,
                slot_key=slot_key,
                weekday=weekday.value,
                requested_class=snapshot_of(new_class),
                is_bulk_update=True,
            )
            return MutationOutcome(MutationStatus.pending, pending_changes=[change])

        grid = get_active_routine(db, semester_id)
        current = get_cell(grid, weekday, room_number, slot_key)
        if current == new_class:
            return MutationOutcome(MutationStatus.unchanged)

        entry = record_change(
            db,
            actor=actor,
            semester_id=semester_id,
            weekday=weekday,
            room_number=room_number,
            slot_key=slot_key,
            from_class=current,
            to_class=new_class,
        )
        replace_active_routine(db, semester_id, with_cell(grid, weekday, room_number, slot_key, new_class))
        logger.info("Template %s / %s / %s updated by %s", weekday.value, room_number, slot_key, actor.id)
        return MutationOutcome(MutationStatus.applied, log_entries=[entry])


def request_override_change(
    db: Session,
    actor: ActorProfile,
    semester_id: str,
    room_number: str,
    slot_key: str,
    assignments: Mapping[date, ClassDetail | None],
    default_for_slot: ClassDetail | None,
    *,
    force: bool = False,
) -> MutationOutcome:
    with semester_transaction(db, semester_id):
        if not (force or actor.can_approve):
            # One pending change per distinct requested class.
            grouped: dict[ClassDetail | None, list[date]] = {}
            for override_date, value in assignments.items():
                grouped.setdefault(value, []).append(override_date)
            changes = []
            for value, dates in grouped.items():
                dates = sorted(dates)
                changes.append(
                    _enqueue(
                        db,
                        actor,
                        kind=PendingChangeKind.override_batch,
                        semester_id=semester_id,
                        room_number=room_number,
                        slot_key=slot_key,
                        weekday=weekday_of(dates[0]).value,
                        requested_class=snapshot_of(value),
                        is_bulk_update=False,
                        dates=[item.isoformat() for item in dates],
                    )
                )
            return MutationOutcome(MutationStatus.pending, pending_changes=changes)

        previous = get_overrides(db, room_number, slot_key)
        resulting = {**previous, **assignments}
        resulting = {key: value for key, value in resulting.items() if value != default_for_slot}

        timestamp = datetime.now(timezone.utc)
        entries = []
        for override_date in sorted(previous.keys() | resulting.keys()):
            entry = record_change(
                db,
                actor=actor,
                semester_id=semester_id,
                weekday=weekday_of(override_date),
                room_number=room_number,
                slot_key=slot_key,
                from_class=previous.get(override_date, default_for_slot),
                to_class=resulting.get(override_date, default_for_slot),
                override_date=override_date,
                timestamp=timestamp,
            )
            if entry is not None:
                entries.append(entry)

        if not entries:
            return MutationOutcome(MutationStatus.unchanged)

        set_overrides(db, room_number, slot_key, assignments, default_for_slot, updated_by_id=actor.id)
        logger.info(
            "Overrides for %s / %s updated on %d date(s) by %s", room_number, slot_key, len(entries), actor.id
        )
        return MutationOutcome(MutationStatus.applied, log_entries=entries)


def request_move(
    db: Session,
    actor: ActorProfile,
    semester_id: str,
    source: CellRef,
    target: CellRef,
    moving_class: ClassDetail,
    *,
    force: bool = False,
) -> MutationOutcome:
    """Move a class between two template cells.

    An occupied target is rejected outright; moves never swap.
    """
    with semester_transaction(db, semester_id):
        source_room = get_room(db, semester_id, source.room_number)
        target_room = get_room(db, semester_id, target.room_number)

        grid = get_active_routine(db, semester_id)
        if get_cell(grid, target.weekday, target.room_number, target.slot_key) is not None:
            raise TargetOccupied(target.weekday.value, target.room_number, target.slot_key)

        if not (force or (actor.can_edit_room(source_room) and actor.can_edit_room(target_room))):
            change = _enqueue(
                db,
                actor,
                kind=PendingChangeKind.move,
                semester_id=semester_id,
                room_number=target.room_number,
                slot_key=target.slot_key,
                weekday=target.weekday.value,
                requested_class=snapshot_of(moving_class),
                is_bulk_update=True,
                source={
                    "weekday": source.weekday.value,
                    "room_number": source.room_number,
                    "slot_key": source.slot_key,
                },
            )
            return MutationOutcome(MutationStatus.pending, pending_changes=[change])

        timestamp = datetime.now(timezone.utc)
        current_source = get_cell(grid, source.weekday, source.room_number, source.slot_key)
        updated = with_cell(grid, source.weekday, source.room_number, source.slot_key, None)
        updated = with_cell(updated, target.weekday, target.room_number, target.slot_key, moving_class)

        entries = []
        for cell, from_class, to_class in (
            (source, current_source, None),
            (target, None, moving_class),
        ):
            entry = record_change(
                db,
                actor=actor,
                semester_id=semester_id,
                weekday=cell.weekday,
                room_number=cell.room_number,
                slot_key=cell.slot_key,
                from_class=from_class,
                to_class=to_class,
                timestamp=timestamp,
            )
            if entry is not None:
                entries.append(entry)

        replace_active_routine(db, semester_id, updated)
        logger.info(
            "Moved %s from %s / %s / %s to %s / %s / %s",
            moving_class.course_code,
            source.weekday.value,
            source.room_number,
            source.slot_key,
            target.weekday.value,
            target.room_number,
            target.slot_key,
        )
        return MutationOutcome(MutationStatus.applied, log_entries=entries)


def apply_suggestion(
    db: Session,
    actor: ActorProfile,
    semester_id: str,
    source: CellRef,
    target: CellRef,
) -> MutationOutcome:
    """Forward a conflict-resolution suggestion into the move path."""
    moving_class = get_cell(get_active_routine(db, semester_id), source.weekday, source.room_number, source.slot_key)
    if moving_class is None:
        raise ResourceNotFoundError(
            "Class", f"{source.weekday.value} / {source.room_number} / {source.slot_key}"
        )
    return request_move(db, actor, semester_id, source, target, moving_class)


def assign_section(
    db: Session,
    actor: ActorProfile,
    semester_id: str,
    section_id: str,
    target: CellRef,
) -> MutationOutcome:
    """Place a catalog section into a template cell through the regular change path."""
    section = db.get(Section, section_id)
    if section is None or section.semester_id != semester_id:
        raise ResourceNotFoundError("Section", section_id)
    return request_template_change(
        db,
        actor,
        semester_id,
        target.weekday,
        target.room_number,
        target.slot_key,
        class_from_section(section),
    )
