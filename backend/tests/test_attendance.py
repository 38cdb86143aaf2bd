from datetime import date

import pytest

from app.core.exceptions import DuplicateAttendanceEntry
from app.models.attendance import AttendanceLogEntry, AttendanceStatus
from app.models.schedule_log import ScheduleLogEntry
from app.schemas.attendance import AttendanceIn
from app.services import attendance
from app.services.audit import clear_log, query_log
from app.services.mutation_router import request_template_change
from app.services.overrides import book_override, get_overrides

from conftest import LATE_MORNING, MORNING, PROGRAM, SEMESTER, cse101

CLASS_DATE = date(2025, 3, 8)
MAKEUP_DATE = date(2025, 3, 11)


def _payload(**overrides) -> AttendanceIn:
    values = {
        "semester_id": SEMESTER,
        "class_date": CLASS_DATE,
        "slot_key": MORNING,
        "room_number": "KT-101",
        "p_id": PROGRAM,
        "course_code": "CSE101",
        "section": "A",
        "teacher_id": "T-1",
        "status": AttendanceStatus.teacher_absent,
        "makeup": {"date": MAKEUP_DATE, "slot_key": LATE_MORNING, "room_number": "KT-102"},
    }
    values.update(overrides)
    return AttendanceIn.model_validate(values)


def test_makeup_books_an_override_without_logging(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    entry = attendance.save_attendance(db, world.requester_actor, _payload())

    booked = get_overrides(db, "KT-102", LATE_MORNING)
    assert list(booked) == [MAKEUP_DATE]
    assert booked[MAKEUP_DATE].course_code == "CSE101"
    assert booked[MAKEUP_DATE].section == "A"
    assert entry.makeup_date == MAKEUP_DATE
    assert entry.logged_by_id == world.requester.id
    assert db.query(ScheduleLogEntry).count() == 0


def test_makeup_without_catalog_section_is_not_booked(db, world):
    entry = attendance.save_attendance(db, world.requester_actor, _payload())
    assert entry.makeup_date == MAKEUP_DATE
    assert get_overrides(db, "KT-102", LATE_MORNING) == {}


def test_duplicate_attendance_is_rejected(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    attendance.save_attendance(db, world.requester_actor, _payload(makeup=None))
    with pytest.raises(DuplicateAttendanceEntry):
        attendance.save_attendance(db, world.requester_actor, _payload(makeup=None))
    assert db.query(AttendanceLogEntry).count() == 1


def test_moving_or_dropping_the_makeup_releases_the_old_booking(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    entry = attendance.save_attendance(db, world.requester_actor, _payload())

    moved = {"date": date(2025, 3, 12), "slot_key": MORNING, "room_number": "KT-102"}
    attendance.save_attendance(db, world.requester_actor, _payload(makeup=moved), entry_id=entry.id)
    assert get_overrides(db, "KT-102", LATE_MORNING) == {}
    assert list(get_overrides(db, "KT-102", MORNING)) == [date(2025, 3, 12)]

    attendance.save_attendance(db, world.requester_actor, _payload(makeup=None), entry_id=entry.id)
    assert get_overrides(db, "KT-102", MORNING) == {}
    assert attendance.get_attendance(db, entry.id).makeup_date is None


def test_delete_and_toggle(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    entry = attendance.save_attendance(db, world.requester_actor, _payload())

    toggled = attendance.toggle_makeup_completed(db, entry.id)
    assert toggled.makeup_completed is True
    db.commit()

    attendance.delete_attendance(db, entry.id)
    assert attendance.list_attendance(db, semester_id=SEMESTER) == []
    assert get_overrides(db, "KT-102", LATE_MORNING) == {}


def test_clear_log_releases_makeup_bookings(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    request_template_change(db, world.admin_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    entry = attendance.save_attendance(db, world.requester_actor, _payload())
    assert query_log(db, semester_id=SEMESTER)[0] == 1

    entries_removed, overrides_removed = clear_log(db, actor=world.admin_actor)
    db.commit()

    assert (entries_removed, overrides_removed) == (1, 1)
    assert query_log(db)[0] == 0
    assert get_overrides(db, "KT-102", LATE_MORNING) == {}
    kept = attendance.get_attendance(db, entry.id)
    assert kept.makeup_date is None
    assert kept.status == AttendanceStatus.teacher_absent


def test_clear_attendance_removes_entries_and_bookings(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    attendance.save_attendance(db, world.requester_actor, _payload())
    attendance.save_attendance(db, world.requester_actor, _payload(class_date=date(2025, 3, 15), makeup=None))

    assert attendance.clear_attendance(db) == (2, 1)
    db.commit()
    assert attendance.list_attendance(db) == []


def test_new_makeup_record_is_stored_with_every_field(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    entry = attendance.save_attendance(db, world.requester_actor, _payload())
    db.commit()

    stored = db.get(AttendanceLogEntry, entry.id)
    assert stored.semester_id == SEMESTER
    assert stored.class_date == CLASS_DATE
    assert (stored.makeup_slot_key, stored.makeup_room_number) == (LATE_MORNING, "KT-102")
    assert stored.makeup_completed is False


def test_releasing_a_makeup_keeps_a_replacement_class(db, world, add_section):
    add_section("CSE101", "A", teacher_id="T-1")
    entry = attendance.save_attendance(db, world.requester_actor, _payload())
    book_override(db, "KT-102", LATE_MORNING, MAKEUP_DATE, cse101("B"), updated_by_id=world.approver.id)
    db.commit()

    attendance.delete_attendance(db, entry.id)
    db.commit()

    kept = get_overrides(db, "KT-102", LATE_MORNING)
    assert kept[MAKEUP_DATE] == cse101("B")
