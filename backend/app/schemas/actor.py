from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.directory import Room
from app.models.user import AssignAccess, User, UserRole


class ActorProfile(BaseModel):
    """Permission profile handed to the routine engine by the auth layer."""

    id: str
    name: str | None = None
    role: UserRole
    can_approve_slots: bool = False
    bulk_assign_access: AssignAccess = AssignAccess.none
    accessible_program_pids: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_user(cls, user: User) -> "ActorProfile":
        return cls(
            id=user.id,
            name=user.name,
            role=user.role,
            can_approve_slots=bool(user.can_approve_slots),
            bulk_assign_access=user.bulk_assign_access or AssignAccess.none,
            accessible_program_pids=list(user.accessible_program_pids or []),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def can_approve(self) -> bool:
        return self.is_admin or self.can_approve_slots

    def can_edit_room(self, room: Room) -> bool:
        if self.is_admin:
            return True
        if not room.assigned_to_pid:
            return self.bulk_assign_access != AssignAccess.none
        return self.can_approve_slots and room.assigned_to_pid in self.accessible_program_pids
