from datetime import date

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.models.directory import CourseType, SemesterSystem
from app.models.user import AssignAccess, UserRole
from app.schemas.slots import DayOfWeek, TimeSlotDef


class ProgramBase(BaseModel):
    p_id: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=200)
    short_name: str | None = Field(default=None, max_length=50)
    semester_system: SemesterSystem = SemesterSystem.tri_semester
    active_days: list[DayOfWeek] = Field(default_factory=list, max_length=7)
    program_specific_slots: list[TimeSlotDef] = Field(default_factory=list, max_length=100)


class ProgramIn(ProgramBase):
    pass


class ProgramOut(ProgramBase):
    id: str

    model_config = {"from_attributes": True}


class RoomBase(BaseModel):
    building_id: str = Field(min_length=1, max_length=36)
    room_number: str = Field(min_length=1, max_length=50)
    semester_id: str = Field(min_length=1, max_length=100)
    capacity: int = Field(default=40, ge=1, le=1000)
    assigned_to_pid: str | None = Field(default=None, max_length=50)
    shared_with_pids: list[str] = Field(default_factory=list)
    supported_slots: list[TimeSlotDef] = Field(default_factory=list, max_length=100)


class RoomIn(RoomBase):
    pass


class RoomOut(RoomBase):
    id: str

    model_config = {"from_attributes": True}


class SectionBase(BaseModel):
    semester_id: str = Field(min_length=1, max_length=100)
    p_id: str = Field(min_length=1, max_length=50)
    course_code: str = Field(min_length=1, max_length=50)
    course_title: str | None = Field(default=None, max_length=200)
    section: str = Field(min_length=1, max_length=50)
    level_term: str | None = Field(default=None, max_length=20)
    teacher_id: str | None = Field(default=None, max_length=50)
    teacher_name: str | None = Field(default=None, max_length=200)
    weekly_class: int = Field(default=0, ge=0, le=50)
    course_type: CourseType = CourseType.not_applicable
    class_taken: int = Field(default=0, ge=0)


class SectionIn(SectionBase):
    pass


class SectionOut(SectionBase):
    id: str

    model_config = {"from_attributes": True}


class SemesterDateRangeBase(BaseModel):
    semester_id: str = Field(min_length=1, max_length=100)
    semester_system: SemesterSystem
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def validate_order(self) -> "SemesterDateRangeBase":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SemesterDateRangeIn(SemesterDateRangeBase):
    pass


class SemesterDateRangeOut(SemesterDateRangeBase):
    id: str

    model_config = {"from_attributes": True}


class UserProfileBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr | None = None
    role: UserRole
    employee_id: str | None = Field(default=None, max_length=50)
    can_approve_slots: bool = False
    bulk_assign_access: AssignAccess = AssignAccess.none
    accessible_program_pids: list[str] = Field(default_factory=list)
    day_offs: list[DayOfWeek] = Field(default_factory=list, max_length=7)
    is_active: bool = True


class UserProfileIn(UserProfileBase):
    pass


class UserProfileOut(UserProfileBase):
    id: str
    email: str | None = None

    model_config = {"from_attributes": True}
