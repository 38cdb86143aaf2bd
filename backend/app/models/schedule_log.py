from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ScheduleLogEntry(Base):
    __tablename__ = "schedule_log"

    # Autoincrement id doubles as the replay order; timestamps can tie.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    actor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    semester_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    room_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    slot_key: Mapped[str] = mapped_column(String(40), nullable=False)
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    is_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    override_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    from_class: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    to_class: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
