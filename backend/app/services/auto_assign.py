"""Greedy filler that places outstanding section demand into free template cells.

The run reads the active template and the override map once, fills a private
copy of the grid and commits it as a new version only if anything was placed.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
import logging
import random

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import ConfigurationError, ResourceNotFoundError
from app.models.directory import CourseType, Program, Room, Section
from app.models.user import User
from app.schemas.actor import ActorProfile
from app.schemas.routine import ClassDetail, class_from_section
from app.schemas.slots import DAYS_OF_WEEK, DayOfWeek, SlotType, TimeSlotDef, day_index
from app.services.audit import log_activity
from app.services.calendar import future_dates
from app.services.locks import semester_transaction
from app.services.overrides import get_override_map, is_locked
from app.services.routine_store import commit_version, get_active_routine, iter_cells

logger = logging.getLogger(__name__)


@dataclass
class AutoAssignResult:
    program_pid: str
    semester_id: str
    requested: int
    assigned: int
    version_id: str | None = None

    @property
    def unfilled(self) -> int:
        return self.requested - self.assigned


@dataclass(frozen=True)
class _Task:
    section: Section
    class_detail: ClassDetail

    @property
    def instant_key(self) -> tuple[str, str | None, str]:
        return (self.section.p_id, self.section.level_term, self.section.section)


@dataclass(frozen=True)
class _Candidate:
    weekday: DayOfWeek
    room_number: str
    slot: TimeSlotDef

    def sort_key(self) -> tuple:
        return (self.room_number, day_index(self.weekday), self.slot.start_time)


class _InstantLedger:
    """Teachers and sections already placed at each (weekday, slot key)."""

    def __init__(self) -> None:
        self._teachers: dict[tuple[str, str], set[str]] = {}
        self._sections: dict[tuple[str, str], set[tuple]] = {}

    def add(self, weekday: str, slot_key: str, teacher_id: str | None, section_key: tuple) -> None:
        instant = (weekday, slot_key)
        if teacher_id:
            self._teachers.setdefault(instant, set()).add(teacher_id)
        self._sections.setdefault(instant, set()).add(section_key)

    def is_free(self, weekday: str, slot_key: str, teacher_id: str | None, section_key: tuple) -> bool:
        instant = (weekday, slot_key)
        if teacher_id and teacher_id in self._teachers.get(instant, ()):
            return False
        return section_key not in self._sections.get(instant, ())


def _eligible_sections(db: Session, semester_id: str, program_pid: str) -> list[Section]:
    sections = db.execute(
        select(Section).where(
            Section.semester_id == semester_id,
            Section.p_id == program_pid,
            Section.course_type.in_([CourseType.theory, CourseType.lab]),
            Section.weekly_class > 0,
        )
        .order_by(Section.course_code, Section.section)
    ).scalars()
    return [item for item in sections if item.level_term and item.level_term != "N/A"]


def _program_rooms(db: Session, semester_id: str, program_pid: str) -> list[Room]:
    rooms = db.execute(select(Room).where(Room.semester_id == semester_id).order_by(Room.room_number)).scalars()
    return [
        room
        for room in rooms
        if room.supported_slots
        and (room.assigned_to_pid == program_pid or program_pid in (room.shared_with_pids or []))
    ]


def _catalog_index(db: Session, semester_id: str) -> dict[tuple[str | None, str, str], Section]:
    rows = db.execute(select(Section).where(Section.semester_id == semester_id)).scalars()
    return {(row.p_id, row.course_code, row.section): row for row in rows}


def _teacher_day_offs(db: Session, teacher_ids: set[str]) -> dict[str, set[str]]:
    if not teacher_ids:
        return {}
    users = db.execute(select(User).where(User.employee_id.in_(teacher_ids))).scalars()
    return {user.employee_id: set(user.day_offs or []) for user in users}


def auto_assign(
    db: Session,
    actor: ActorProfile,
    *,
    program_pid: str,
    semester_id: str,
    rng: random.Random | None = None,
    today: date | None = None,
) -> AutoAssignResult:
    program = db.execute(select(Program).where(Program.p_id == program_pid)).scalar_one_or_none()
    if program is None:
        raise ResourceNotFoundError("Program", program_pid)

    settings = get_settings()
    if rng is None:
        rng = random.Random(settings.auto_assign_seed)
    allowed_days = settings.level_term_day_constraints
    for level_term, days in allowed_days.items():
        unknown = sorted(set(days) - {day.value for day in DAYS_OF_WEEK})
        if unknown:
            raise ConfigurationError(f"Level term {level_term} names unknown weekdays: {', '.join(unknown)}")

    with semester_transaction(db, semester_id):
        grid = get_active_routine(db, semester_id)
        catalog = _catalog_index(db, semester_id)

        # Demand.
        scheduled = Counter(
            detail.section_identity for _, _, _, detail in iter_cells(grid) if detail.p_id == program_pid
        )
        tasks: list[_Task] = []
        for section in _eligible_sections(db, semester_id, program_pid):
            needed = section.weekly_class - scheduled[(section.p_id, section.course_code, section.section)]
            detail = class_from_section(section)
            tasks.extend(_Task(section, detail) for _ in range(max(needed, 0)))

        result = AutoAssignResult(program_pid=program_pid, semester_id=semester_id, requested=len(tasks), assigned=0)
        if not tasks:
            logger.info("Auto-assign for %s / %s: nothing outstanding", program_pid, semester_id)
            return result

        # Supply.
        days = [DayOfWeek(day) for day in (program.active_days or DAYS_OF_WEEK)]
        program_slots = [TimeSlotDef.model_validate(item) for item in program.program_specific_slots or []]
        overrides = get_override_map(db)
        dates_by_day = {day: future_dates(db, day, semester_id, program, today=today) for day in days}

        candidates: list[_Candidate] = []
        for room in _program_rooms(db, semester_id, program_pid):
            room_slots = [TimeSlotDef.model_validate(item) for item in room.supported_slots]
            for day in days:
                for slot in program_slots:
                    if not any(slot.same_slot(item) for item in room_slots):
                        continue
                    key = slot.key
                    if grid.get(day.value, {}).get(room.room_number, {}).get(key) is not None:
                        continue
                    if is_locked(overrides, room.room_number, key, dates_by_day[day]):
                        continue
                    candidates.append(_Candidate(day, room.room_number, slot))

        ledger = _InstantLedger()
        for day, _, slot_key, detail in iter_cells(grid):
            if DayOfWeek(day) not in days:
                continue
            existing = catalog.get(detail.section_identity)
            if existing is not None:
                ledger.add(day, slot_key, existing.teacher_id, (existing.p_id, existing.level_term, existing.section))

        day_offs = _teacher_day_offs(db, {task.section.teacher_id for task in tasks if task.section.teacher_id})

        placed = 0
        for slot_type, course_type in ((SlotType.theory, CourseType.theory), (SlotType.lab, CourseType.lab)):
            queue = [task for task in tasks if task.section.course_type == course_type]
            rng.shuffle(queue)
            free = sorted((item for item in candidates if item.slot.type == slot_type), key=_Candidate.sort_key)
            for candidate in free:
                if not queue:
                    break
                day = candidate.weekday.value
                key = candidate.slot.key
                for index, task in enumerate(queue):
                    teacher_id = task.section.teacher_id
                    if teacher_id and day in day_offs.get(teacher_id, ()):
                        continue
                    permitted = allowed_days.get(task.section.level_term)
                    if permitted and day not in permitted:
                        continue
                    if not ledger.is_free(day, key, teacher_id, task.instant_key):
                        continue
                    # grid is this run's private copy
                    grid.setdefault(day, {}).setdefault(candidate.room_number, {})[key] = task.class_detail.snapshot()
                    ledger.add(day, key, teacher_id, task.instant_key)
                    placed += 1
                    del queue[index]
                    break

        result.assigned = placed
        if placed:
            result.version_id = commit_version(db, semester_id, grid, created_by_id=actor.id)
            log_activity(
                db,
                user=actor,
                action="routine.auto_assign",
                semester_id=semester_id,
                entity_type="routine_version",
                entity_id=result.version_id,
                details={"program_pid": program_pid, "requested": result.requested, "assigned": placed},
            )
        logger.info(
            "Auto-assign for %s / %s placed %d of %d", program_pid, semester_id, placed, result.requested
        )
        return result
