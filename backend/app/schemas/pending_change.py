from datetime import datetime

from pydantic import BaseModel

from app.models.pending_change import PendingChangeKind, PendingChangeStatus
from app.schemas.routine import ClassDetail


class PendingSourceOut(BaseModel):
    weekday: str
    room_number: str
    slot_key: str


class PendingChangeOut(BaseModel):
    id: str
    requester_id: str
    requester_name: str | None
    kind: PendingChangeKind
    status: PendingChangeStatus
    semester_id: str
    room_number: str
    slot_key: str
    weekday: str
    requested_class: ClassDetail | None
    is_bulk_update: bool
    dates: list[str] | None
    source: PendingSourceOut | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ResolutionOut(BaseModel):
    change_id: str
    resolved: bool
    notification_id: str | None = None
