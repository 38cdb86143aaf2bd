from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.slots import DayOfWeek, SlotKey


class ClassDetail(BaseModel):
    """A class occupying one grid cell; compared by value."""

    course_code: str = Field(min_length=1, max_length=50)
    course_name: str | None = None
    section: str = Field(min_length=1, max_length=50)
    teacher: str | None = None
    p_id: str | None = None
    level_term: str | None = None
    color: str | None = None
    class_taken: int | None = None

    model_config = {"frozen": True}

    def snapshot(self) -> dict:
        return self.model_dump(mode="json")

    @property
    def section_identity(self) -> tuple[str | None, str, str]:
        return (self.p_id, self.course_code, self.section)


def class_from_snapshot(value: dict | None) -> ClassDetail | None:
    if value is None:
        return None
    return ClassDetail.model_validate(value)


def snapshot_of(value: ClassDetail | None) -> dict | None:
    return value.snapshot() if value is not None else None


LEVEL_TERM_COLORS = {
    "L1T1": "bg-sky-100",
    "L1T2": "bg-lime-100",
    "L1T3": "bg-amber-100",
    "L2T1": "bg-rose-100",
    "L2T2": "bg-teal-100",
    "L2T3": "bg-blue-100",
    "L3T1": "bg-green-100",
    "L3T2": "bg-yellow-100",
    "L3T3": "bg-purple-100",
    "L4T1": "bg-pink-100",
    "L4T2": "bg-orange-100",
    "L4T3": "bg-cyan-100",
}
DEFAULT_LEVEL_TERM_COLOR = "bg-gray-100"


def level_term_color(level_term: str | None) -> str:
    return LEVEL_TERM_COLORS.get(level_term or "", DEFAULT_LEVEL_TERM_COLOR)


def class_from_section(section) -> ClassDetail:
    """Build the cell value for one catalog section."""
    return ClassDetail(
        course_code=section.course_code,
        course_name=section.course_title,
        section=section.section,
        teacher=section.teacher_name,
        p_id=section.p_id,
        level_term=section.level_term,
        color=level_term_color(section.level_term),
        class_taken=section.class_taken,
    )


class CellRef(BaseModel):
    weekday: DayOfWeek
    room_number: str = Field(min_length=1, max_length=50)
    slot_key: str

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class TemplateChangeIn(BaseModel):
    weekday: DayOfWeek
    room_number: str = Field(min_length=1, max_length=50)
    slot_key: str
    new_class: ClassDetail | None = None

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class MoveRequestIn(BaseModel):
    source: CellRef
    target: CellRef
    moving_class: ClassDetail


class SuggestionIn(BaseModel):
    source: CellRef
    target: CellRef


class SectionAssignIn(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    target: CellRef


class OverrideChangeIn(BaseModel):
    room_number: str = Field(min_length=1, max_length=50)
    slot_key: str
    assignments: dict[date, ClassDetail | None] = Field(min_length=1)
    default_for_slot: ClassDetail | None = None

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class MutationOutcomeOut(BaseModel):
    status: str
    log_entry_ids: list[int] = Field(default_factory=list)
    pending_change_ids: list[str] = Field(default_factory=list)


class SaveVersionIn(BaseModel):
    label: str | None = Field(default=None, max_length=100)


class RoutineVersionOut(BaseModel):
    id: str
    semester_id: str
    label: str
    created_by_id: str | None
    created_at: datetime
    is_active: bool = False

    model_config = {"from_attributes": True}


class ActiveRoutineOut(BaseModel):
    semester_id: str
    active_version_id: str | None
    routine: dict[str, dict[str, dict[str, ClassDetail]]]


class VersionCompareOut(BaseModel):
    from_version_id: str
    to_version_id: str
    added_cells: int
    removed_cells: int
    changed_cells: int


class DayCellOut(BaseModel):
    room_number: str
    slot_key: str
    class_detail: ClassDetail | None
    is_override: bool


class DayViewOut(BaseModel):
    semester_id: str
    date: date
    weekday: DayOfWeek
    cells: list[DayCellOut]
