import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AttendanceStatus(str, Enum):
    running = "class_running"
    all_absent = "students_and_teacher_absent"
    teacher_absent = "teacher_absent"
    students_absent = "students_absent"


class AttendanceLogEntry(Base):
    __tablename__ = "attendance_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    semester_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    class_date: Mapped[date] = mapped_column(Date, nullable=False)
    slot_key: Mapped[str] = mapped_column(String(40), nullable=False)
    room_number: Mapped[str] = mapped_column(String(50), nullable=False)
    p_id: Mapped[str] = mapped_column(String(50), nullable=False)
    course_code: Mapped[str] = mapped_column(String(50), nullable=False)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        SAEnum(AttendanceStatus, name="attendance_status"), nullable=False
    )
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    makeup_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    makeup_slot_key: Mapped[str | None] = mapped_column(String(40), nullable=True)
    makeup_room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    makeup_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    logged_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
