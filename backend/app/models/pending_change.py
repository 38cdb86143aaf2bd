import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class PendingChangeKind(str, Enum):
    bulk = "bulk"
    override_batch = "override_batch"
    move = "move"


class PendingChangeStatus(str, Enum):
    open = "open"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class PendingChange(Base):
    __tablename__ = "pending_changes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    requester_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    requester_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    kind: Mapped[PendingChangeKind] = mapped_column(
        SAEnum(PendingChangeKind, name="pending_change_kind"), nullable=False
    )
    status: Mapped[PendingChangeStatus] = mapped_column(
        SAEnum(PendingChangeStatus, name="pending_change_status"),
        nullable=False,
        default=PendingChangeStatus.open,
    )
    semester_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    room_number: Mapped[str] = mapped_column(String(50), nullable=False)
    slot_key: Mapped[str] = mapped_column(String(40), nullable=False)
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    requested_class: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    is_bulk_update: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    dates: Mapped[list[str] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    # {"weekday", "room_number", "slot_key"}; only set for move requests.
    source: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
