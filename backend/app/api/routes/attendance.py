from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_actor, get_db, require_roles
from app.models.user import User, UserRole
from app.schemas.actor import ActorProfile
from app.schemas.attendance import AttendanceClearOut, AttendanceIn, AttendanceOut
from app.services import attendance as attendance_service

router = APIRouter()

_loggers = require_roles(UserRole.admin, UserRole.coordinator, UserRole.teacher)


@router.get("/attendance", response_model=list[AttendanceOut])
def list_attendance(
    semester_id: str | None = Query(default=None),
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[AttendanceOut]:
    return attendance_service.list_attendance(db, semester_id=semester_id)


@router.post("/attendance", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def create_attendance(
    payload: AttendanceIn,
    current_user: User = Depends(_loggers),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    entry = attendance_service.save_attendance(db, ActorProfile.from_user(current_user), payload)
    db.refresh(entry)
    return entry


@router.put("/attendance/{entry_id}", response_model=AttendanceOut)
def update_attendance(
    entry_id: str,
    payload: AttendanceIn,
    current_user: User = Depends(_loggers),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    entry = attendance_service.save_attendance(
        db, ActorProfile.from_user(current_user), payload, entry_id=entry_id
    )
    db.refresh(entry)
    return entry


@router.post("/attendance/{entry_id}/toggle-makeup", response_model=AttendanceOut)
def toggle_makeup(
    entry_id: str,
    current_user: User = Depends(_loggers),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    entry = attendance_service.toggle_makeup_completed(db, entry_id)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/attendance/{entry_id}")
def delete_attendance(
    entry_id: str,
    current_user: User = Depends(_loggers),
    db: Session = Depends(get_db),
) -> dict:
    attendance_service.delete_attendance(db, entry_id)
    return {"success": True}


@router.delete("/attendance", response_model=AttendanceClearOut)
def clear_attendance(
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> AttendanceClearOut:
    entries_removed, overrides_removed = attendance_service.clear_attendance(db)
    db.commit()
    return AttendanceClearOut(entries_removed=entries_removed, overrides_removed=overrides_removed)
