"""Reference data the routine engine reads: programs, rooms, sections, date ranges and user profiles."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.directory import Program, Room, Section, SemesterDateRange
from app.models.user import User, UserRole
from app.schemas.directory import (
    ProgramIn,
    ProgramOut,
    RoomIn,
    RoomOut,
    SectionIn,
    SectionOut,
    SemesterDateRangeIn,
    SemesterDateRangeOut,
    UserProfileIn,
    UserProfileOut,
)
from app.services.routine_store import ensure_semester

router = APIRouter()

_admin = require_roles(UserRole.admin)


def _assign(record, payload) -> None:
    for key, value in payload.model_dump(mode="json").items():
        setattr(record, key, value)


@router.get("/programs", response_model=list[ProgramOut])
def list_programs(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[ProgramOut]:
    return list(db.execute(select(Program).order_by(Program.p_id)).scalars())


@router.put("/programs", response_model=ProgramOut)
def upsert_program(
    payload: ProgramIn,
    current_user: User = Depends(_admin),
    db: Session = Depends(get_db),
) -> ProgramOut:
    program = db.execute(select(Program).where(Program.p_id == payload.p_id)).scalar_one_or_none()
    if program is None:
        program = Program()
        db.add(program)
    _assign(program, payload)
    program.semester_system = payload.semester_system
    db.commit()
    db.refresh(program)
    return program


@router.get("/rooms", response_model=list[RoomOut])
def list_rooms(
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RoomOut]:
    query = select(Room).order_by(Room.semester_id, Room.room_number)
    if semester_id:
        query = query.where(Room.semester_id == semester_id)
    return list(db.execute(query).scalars())


@router.put("/rooms", response_model=RoomOut)
def upsert_room(
    payload: RoomIn,
    current_user: User = Depends(_admin),
    db: Session = Depends(get_db),
) -> RoomOut:
    room = db.execute(
        select(Room).where(Room.semester_id == payload.semester_id, Room.room_number == payload.room_number)
    ).scalar_one_or_none()
    if room is None:
        room = Room()
        db.add(room)
    _assign(room, payload)
    db.commit()
    db.refresh(room)
    return room


@router.get("/sections", response_model=list[SectionOut])
def list_sections(
    semester_id: str | None = Query(default=None),
    p_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[SectionOut]:
    query = select(Section).order_by(Section.p_id, Section.course_code, Section.section)
    if semester_id:
        query = query.where(Section.semester_id == semester_id)
    if p_id:
        query = query.where(Section.p_id == p_id)
    return list(db.execute(query).scalars())


@router.put("/sections", response_model=SectionOut)
def upsert_section(
    payload: SectionIn,
    current_user: User = Depends(_admin),
    db: Session = Depends(get_db),
) -> SectionOut:
    section = db.execute(
        select(Section).where(
            Section.semester_id == payload.semester_id,
            Section.p_id == payload.p_id,
            Section.course_code == payload.course_code,
            Section.section == payload.section,
        )
    ).scalar_one_or_none()
    if section is None:
        section = Section()
        db.add(section)
    _assign(section, payload)
    section.course_type = payload.course_type
    db.commit()
    db.refresh(section)
    return section


@router.get("/semester-date-ranges", response_model=list[SemesterDateRangeOut])
def list_semester_date_ranges(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[SemesterDateRangeOut]:
    return list(db.execute(select(SemesterDateRange).order_by(SemesterDateRange.semester_id)).scalars())


@router.put("/semester-date-ranges", response_model=SemesterDateRangeOut)
def upsert_semester_date_range(
    payload: SemesterDateRangeIn,
    current_user: User = Depends(_admin),
    db: Session = Depends(get_db),
) -> SemesterDateRangeOut:
    record = db.execute(
        select(SemesterDateRange).where(
            SemesterDateRange.semester_id == payload.semester_id,
            SemesterDateRange.semester_system == payload.semester_system,
        )
    ).scalar_one_or_none()
    if record is None:
        record = SemesterDateRange(semester_id=payload.semester_id, semester_system=payload.semester_system)
        db.add(record)
    record.start_date = payload.start_date
    record.end_date = payload.end_date
    # Configuring a semester gives it an empty routine to edit.
    ensure_semester(db, payload.semester_id, created_by_id=current_user.id)
    db.commit()
    db.refresh(record)
    return record


@router.get("/users", response_model=list[UserProfileOut])
def list_users(current_user: User = Depends(_admin), db: Session = Depends(get_db)) -> list[UserProfileOut]:
    return list(db.execute(select(User).order_by(User.name)).scalars())


@router.post("/users", response_model=UserProfileOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserProfileIn,
    current_user: User = Depends(_admin),
    db: Session = Depends(get_db),
) -> UserProfileOut:
    if payload.email:
        existing = db.execute(select(User).where(User.email == payload.email)).scalar_one_or_none()
        if existing is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    user = User()
    _assign(user, payload)
    user.role = payload.role
    user.bulk_assign_access = payload.bulk_assign_access
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.put("/users/{user_id}", response_model=UserProfileOut)
def update_user(
    user_id: str,
    payload: UserProfileIn,
    current_user: User = Depends(_admin),
    db: Session = Depends(get_db),
) -> UserProfileOut:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    _assign(user, payload)
    user.role = payload.role
    user.bulk_assign_access = payload.bulk_assign_access
    db.commit()
    db.refresh(user)
    return user
