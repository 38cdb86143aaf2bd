"""Reference data owned by the program, room and course directories.

The routine engine only reads these tables; they are filled by the directory
upsert endpoints or by an external sync.
"""
import uuid
from datetime import date
from enum import Enum

from sqlalchemy import Date, Enum as SAEnum, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class SemesterSystem(str, Enum):
    tri_semester = "Tri-Semester"
    bi_semester = "Bi-Semester"


class CourseType(str, Enum):
    theory = "Theory"
    lab = "Lab"
    thesis = "Thesis"
    project = "Project"
    internship = "Internship"
    viva = "Viva"
    others = "Others"
    not_applicable = "N/A"


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    p_id: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    semester_system: Mapped[SemesterSystem] = mapped_column(
        SAEnum(SemesterSystem, name="semester_system", values_callable=lambda enum: [item.value for item in enum]),
        nullable=False,
        default=SemesterSystem.tri_semester,
    )
    active_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # [{"type": "Theory", "start_time": "09:00", "end_time": "10:30"}, ...]
    program_specific_slots: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)


class Room(Base):
    """One room as configured for one semester."""

    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("semester_id", "room_number", name="uq_rooms_semester_room"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    building_id: Mapped[str] = mapped_column(String(36), nullable=False)
    room_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    semester_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=40)
    assigned_to_pid: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shared_with_pids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    supported_slots: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)


class Section(Base):
    __tablename__ = "sections"
    __table_args__ = (
        UniqueConstraint("semester_id", "p_id", "course_code", "section", name="uq_sections_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    semester_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    p_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    course_code: Mapped[str] = mapped_column(String(50), nullable=False)
    course_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    level_term: Mapped[str | None] = mapped_column(String(20), nullable=True)
    teacher_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    teacher_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    weekly_class: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    course_type: Mapped[CourseType] = mapped_column(
        SAEnum(CourseType, name="course_type", values_callable=lambda enum: [item.value for item in enum]),
        nullable=False,
        default=CourseType.not_applicable,
    )
    class_taken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SemesterDateRange(Base):
    __tablename__ = "semester_date_ranges"
    __table_args__ = (
        UniqueConstraint("semester_id", "semester_system", name="uq_semester_date_ranges_identity"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    semester_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    semester_system: Mapped[SemesterSystem] = mapped_column(
        SAEnum(SemesterSystem, name="semester_system", values_callable=lambda enum: [item.value for item in enum]),
        nullable=False,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
