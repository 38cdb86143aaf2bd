import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class UserRole(str, Enum):
    admin = "admin"
    coordinator = "coordinator"
    teacher = "teacher"
    student = "student"


class AssignAccess(str, Enum):
    none = "none"
    own = "own"
    full = "full"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, name="user_role"), nullable=False)
    employee_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    can_approve_slots: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bulk_assign_access: Mapped[AssignAccess] = mapped_column(
        SAEnum(AssignAccess, name="assign_access"), nullable=False, default=AssignAccess.none
    )
    accessible_program_pids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    day_offs: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
