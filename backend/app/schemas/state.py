from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.pending_change import PendingChangeKind, PendingChangeStatus
from app.schemas.slots import DayOfWeek, SlotKey


class _Aliased(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VersionState(_Aliased):
    version_id: str = Field(alias="versionId")
    label: str
    created_at: datetime = Field(alias="createdAt")
    created_by_id: str | None = Field(default=None, alias="createdById")
    routine: dict[str, dict[str, dict[str, dict]]]

    @field_validator("routine")
    @classmethod
    def validate_grid_keys(cls, value: dict) -> dict:
        for weekday, rooms in value.items():
            DayOfWeek(weekday)
            for slots in rooms.values():
                for key in slots:
                    SlotKey(key)
        return value


class SemesterState(_Aliased):
    active_version_id: str | None = Field(default=None, alias="activeVersionId")
    versions: list[VersionState] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_active_version(self) -> "SemesterState":
        known = {version.version_id for version in self.versions}
        if self.active_version_id is None:
            if known:
                raise ValueError("activeVersionId is required when versions are present")
        elif self.active_version_id not in known:
            raise ValueError(f"activeVersionId {self.active_version_id!r} is not one of the semester's versions")
        return self


class LogEntryState(_Aliased):
    log_id: int = Field(alias="logId")
    timestamp: datetime
    actor_id: str = Field(alias="actorId")
    actor_name: str | None = Field(default=None, alias="actorName")
    semester_id: str = Field(alias="semesterId")
    room_number: str = Field(alias="roomNumber")
    slot_key: str = Field(alias="slotKey")
    weekday: DayOfWeek
    is_override: bool = Field(alias="isOverride")
    override_date: date | None = Field(default=None, alias="date")
    from_class: dict | None = Field(default=None, alias="from")
    to_class: dict | None = Field(default=None, alias="to")

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class PendingChangeState(_Aliased):
    id: str
    requester_id: str = Field(alias="requesterId")
    requester_name: str | None = Field(default=None, alias="requesterName")
    kind: PendingChangeKind
    status: PendingChangeStatus = PendingChangeStatus.open
    timestamp: datetime
    semester_id: str = Field(alias="semesterId")
    room_number: str = Field(alias="roomNumber")
    slot_key: str = Field(alias="slotKey")
    weekday: DayOfWeek
    requested_class: dict | None = Field(default=None, alias="requestedClassInfo")
    is_bulk_update: bool = Field(alias="isBulkUpdate")
    dates: list[str] | None = None
    source: dict | None = None

    @field_validator("slot_key")
    @classmethod
    def validate_slot_key(cls, value: str) -> str:
        return SlotKey(value)


class PersistedState(_Aliased):
    routines_by_semester: dict[str, SemesterState] = Field(default_factory=dict, alias="routinesBySemester")
    # room number -> slot key -> ISO date -> class snapshot or null
    overrides_by_room_slot: dict[str, dict[str, dict[str, dict | None]]] = Field(
        default_factory=dict, alias="overridesByRoomSlot"
    )
    audit_log: list[LogEntryState] = Field(default_factory=list, alias="auditLog")
    pending_changes: list[PendingChangeState] = Field(default_factory=list, alias="pendingChanges")

    @field_validator("overrides_by_room_slot")
    @classmethod
    def validate_override_keys(cls, value: dict) -> dict:
        for slots in value.values():
            for key, by_date in slots.items():
                SlotKey(key)
                for iso_date in by_date:
                    date.fromisoformat(iso_date)
        return value


class StateImportOut(BaseModel):
    semesters: int
    versions: int
    overrides: int
    log_entries: int
    pending_changes: int
