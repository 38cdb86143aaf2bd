import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ScheduleOverride(Base):
    """One date-specific exception for a room and slot.

    A row with ``class_detail`` set to ``None`` forces the slot empty on that
    date. A missing row means the template applies.
    """

    __tablename__ = "schedule_overrides"
    __table_args__ = (
        UniqueConstraint("room_number", "slot_key", "override_date", name="uq_schedule_overrides_cell"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    slot_key: Mapped[str] = mapped_column(String(40), nullable=False)
    override_date: Mapped[date] = mapped_column(Date, nullable=False)
    class_detail: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
