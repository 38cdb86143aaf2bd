from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.models.attendance import AttendanceStatus
from app.schemas.slots import SlotKey


class MakeupIn(BaseModel):
    date: date
    slot_key: str
    room_number: str = Field(min_length=1, max_length=50)

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class AttendanceIn(BaseModel):
    semester_id: str = Field(min_length=1, max_length=100)
    class_date: date
    slot_key: str
    room_number: str = Field(min_length=1, max_length=50)
    p_id: str = Field(min_length=1, max_length=50)
    course_code: str = Field(min_length=1, max_length=50)
    section: str = Field(min_length=1, max_length=50)
    teacher_id: str | None = None
    status: AttendanceStatus
    remark: str | None = Field(default=None, max_length=2000)
    makeup: MakeupIn | None = None

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class AttendanceOut(BaseModel):
    id: str
    semester_id: str
    class_date: date
    slot_key: str
    room_number: str
    p_id: str
    course_code: str
    section: str
    teacher_id: str | None
    status: AttendanceStatus
    remark: str | None
    makeup_date: date | None
    makeup_slot_key: str | None
    makeup_room_number: str | None
    makeup_completed: bool
    logged_by_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AttendanceClearOut(BaseModel):
    entries_removed: int
    overrides_removed: int
