from datetime import date, datetime

from pydantic import BaseModel

from app.schemas.routine import ClassDetail


class ScheduleLogEntryOut(BaseModel):
    id: int
    created_at: datetime
    actor_id: str
    actor_name: str | None
    semester_id: str
    room_number: str
    slot_key: str
    weekday: str
    is_override: bool
    override_date: date | None
    from_class: ClassDetail | None
    to_class: ClassDetail | None

    model_config = {"from_attributes": True}


class ScheduleLogPage(BaseModel):
    total: int
    limit: int
    offset: int
    items: list[ScheduleLogEntryOut]


class ClearLogOut(BaseModel):
    entries_removed: int
    overrides_removed: int
