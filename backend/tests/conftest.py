from dataclasses import dataclass
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.directory import CourseType, Program, Room, Section, SemesterDateRange, SemesterSystem
from app.models.user import AssignAccess, User, UserRole
from app.schemas.actor import ActorProfile
from app.schemas.routine import ClassDetail
from app.services.routine_store import ensure_semester

SEMESTER = "Spring 2025"
PROGRAM = "35"
MORNING = "09:00 AM - 10:30 AM"
LATE_MORNING = "10:30 AM - 12:00 PM"
LAB_SLOT = "01:00 PM - 03:30 PM"

THEORY_SLOTS = [
    {"type": "Theory", "start_time": "09:00", "end_time": "10:30"},
    {"type": "Theory", "start_time": "10:30", "end_time": "12:00"},
]
LAB_SLOTS = [{"type": "Lab", "start_time": "13:00", "end_time": "15:30"}]


@dataclass
class World:
    admin: User
    approver: User
    requester: User
    program: Program

    @property
    def admin_actor(self) -> ActorProfile:
        return ActorProfile.from_user(self.admin)

    @property
    def approver_actor(self) -> ActorProfile:
        return ActorProfile.from_user(self.approver)

    @property
    def requester_actor(self) -> ActorProfile:
        return ActorProfile.from_user(self.requester)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def world(db) -> World:
    """Spring 2025 with program 35, its rooms and three users."""
    program = Program(
        p_id=PROGRAM,
        full_name="Computer Science and Engineering",
        short_name="CSE",
        semester_system=SemesterSystem.tri_semester,
        active_days=["Saturday", "Sunday", "Monday", "Tuesday"],
        program_specific_slots=THEORY_SLOTS + LAB_SLOTS,
    )
    db.add(program)
    db.add_all(
        [
            Room(building_id="b-kt", room_number="KT-101", semester_id=SEMESTER, assigned_to_pid=PROGRAM,
                 supported_slots=THEORY_SLOTS),
            Room(building_id="b-kt", room_number="KT-102", semester_id=SEMESTER, assigned_to_pid=PROGRAM,
                 supported_slots=THEORY_SLOTS),
            Room(building_id="b-kt", room_number="LAB-1", semester_id=SEMESTER, assigned_to_pid=PROGRAM,
                 supported_slots=LAB_SLOTS),
            Room(building_id="b-kt", room_number="KT-201", semester_id=SEMESTER, assigned_to_pid="40",
                 supported_slots=THEORY_SLOTS),
            Room(building_id="b-kt", room_number="GEN-1", semester_id=SEMESTER, assigned_to_pid=None,
                 supported_slots=THEORY_SLOTS),
        ]
    )
    db.add(
        SemesterDateRange(
            semester_id=SEMESTER,
            semester_system=SemesterSystem.tri_semester,
            start_date=date(2025, 1, 4),
            end_date=date(2025, 4, 30),
        )
    )
    admin = User(name="Admin", email="admin@example.com", role=UserRole.admin, bulk_assign_access=AssignAccess.full)
    approver = User(
        name="Coordinator",
        email="coordinator@example.com",
        role=UserRole.coordinator,
        can_approve_slots=True,
        accessible_program_pids=[PROGRAM],
    )
    requester = User(
        name="Teacher",
        email="teacher@example.com",
        role=UserRole.teacher,
        employee_id="T-1",
    )
    db.add_all([admin, approver, requester])
    db.flush()
    ensure_semester(db, SEMESTER, created_by_id=admin.id)
    db.commit()
    return World(admin=admin, approver=approver, requester=requester, program=program)


@pytest.fixture()
def add_section(db):
    def _add(course_code: str, section: str, *, teacher_id: str, level_term: str = "L1T1",
             weekly_class: int = 2, course_type: CourseType = CourseType.theory, p_id: str = PROGRAM) -> Section:
        record = Section(
            semester_id=SEMESTER,
            p_id=p_id,
            course_code=course_code,
            course_title=f"{course_code} title",
            section=section,
            level_term=level_term,
            teacher_id=teacher_id,
            teacher_name=f"Teacher {teacher_id}",
            weekly_class=weekly_class,
            course_type=course_type,
        )
        db.add(record)
        db.commit()
        return record

    return _add


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def cse101(section: str = "A") -> ClassDetail:
    return ClassDetail(course_code="CSE101", course_name="Structured Programming", section=section, p_id=PROGRAM,
                       level_term="L1T1", teacher="Teacher T-1")
