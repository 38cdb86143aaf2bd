from datetime import date

import pytest

from app.core.exceptions import PermissionDenied, TargetOccupied
from app.models.notification import Notification, NotificationType
from app.models.pending_change import PendingChange
from app.models.schedule_log import ScheduleLogEntry
from app.schemas.actor import ActorProfile
from app.schemas.routine import CellRef, class_from_snapshot
from app.services import approvals, routine_store
from app.services.mutation_router import request_move, request_override_change, request_template_change
from app.services.overrides import get_overrides

from conftest import MORNING, SEMESTER, cse101

SAT = date(2025, 3, 8)


def _cell(db, weekday, room_number, slot_key):
    return routine_store.get_cell(routine_store.get_active_routine(db, SEMESTER), weekday, room_number, slot_key)


def _notifications(db, user_id) -> list[Notification]:
    return db.query(Notification).filter(Notification.user_id == user_id).all()


def test_approval_applies_exactly_the_requested_change(db, world):
    request_template_change(db, world.admin_actor, SEMESTER, "Sunday", "KT-102", MORNING, cse101("Z"))
    before = routine_store.get_active_routine(db, SEMESTER)
    queued = request_template_change(db, world.requester_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    change_id = queued.pending_change_ids[0]

    resolution = approvals.approve(db, change_id, world.approver_actor)
    assert resolution.resolved is True
    assert resolution.semester_id == SEMESTER

    after = routine_store.get_active_routine(db, SEMESTER)
    assert after == routine_store.with_cell(before, "Saturday", "KT-101", MORNING, cse101())
    assert db.get(PendingChange, change_id) is None

    entry = db.query(ScheduleLogEntry).order_by(ScheduleLogEntry.id.desc()).first()
    assert entry.actor_id == world.approver.id
    assert class_from_snapshot(entry.to_class) == cse101()

    (notification,) = _notifications(db, world.requester.id)
    assert notification.title == "Request Approved"
    assert notification.notification_type == NotificationType.approval
    assert notification.related_change_id == change_id
    assert "KT-101" in notification.message


def test_second_approval_is_a_no_op(db, world):
    queued = request_template_change(db, world.requester_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    change_id = queued.pending_change_ids[0]
    approvals.approve(db, change_id, world.approver_actor)
    log_count = db.query(ScheduleLogEntry).count()

    again = approvals.approve(db, change_id, world.admin_actor)
    assert again.resolved is False
    assert db.query(ScheduleLogEntry).count() == log_count
    assert len(_notifications(db, world.requester.id)) == 1
    assert approvals.reject(db, change_id, world.approver_actor).resolved is False


def test_reject_leaves_the_grid_alone(db, world):
    queued = request_template_change(db, world.requester_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    change_id = queued.pending_change_ids[0]

    resolution = approvals.reject(db, change_id, world.approver_actor)
    assert resolution.resolved is True
    assert _cell(db, "Saturday", "KT-101", MORNING) is None
    assert db.query(ScheduleLogEntry).count() == 0
    assert db.get(PendingChange, change_id) is None

    (notification,) = _notifications(db, world.requester.id)
    assert notification.title == "Request Rejected"
    assert notification.notification_type == NotificationType.rejection


def test_only_approvers_resolve(db, world):
    queued = request_template_change(db, world.requester_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    with pytest.raises(PermissionDenied):
        approvals.approve(db, queued.pending_change_ids[0], world.requester_actor)
    with pytest.raises(PermissionDenied):
        approvals.reject(db, queued.pending_change_ids[0], world.requester_actor)
    assert db.get(PendingChange, queued.pending_change_ids[0]) is not None


def test_cancel_by_requester_sends_no_notification(db, world):
    queued = request_template_change(db, world.requester_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    change_id = queued.pending_change_ids[0]

    stranger = ActorProfile(id="someone-else", name="Someone", role="teacher")
    with pytest.raises(PermissionDenied):
        approvals.cancel(db, change_id, stranger)

    resolution = approvals.cancel(db, change_id, world.requester_actor)
    assert resolution.resolved is True
    assert resolution.notification is None
    assert db.get(PendingChange, change_id) is None
    assert _notifications(db, world.requester.id) == []
    assert approvals.cancel(db, change_id, world.requester_actor).resolved is False


def test_override_batch_approval_applies_each_date(db, world):
    request_template_change(db, world.admin_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    queued = request_override_change(
        db, world.requester_actor, SEMESTER, "KT-101", MORNING, {SAT: None}, cse101()
    )
    approvals.approve(db, queued.pending_change_ids[0], world.approver_actor)

    assert get_overrides(db, "KT-101", MORNING) == {SAT: None}
    entry = db.query(ScheduleLogEntry).order_by(ScheduleLogEntry.id.desc()).first()
    assert entry.is_override is True
    assert entry.override_date == SAT
    assert entry.to_class is None
    (notification,) = _notifications(db, world.requester.id)
    assert SAT.isoformat() in notification.message
    assert "clear the slot" in notification.message


def test_move_approval_fails_when_the_target_filled_up(db, world):
    request_template_change(db, world.admin_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    source = CellRef(weekday="Saturday", room_number="KT-101", slot_key=MORNING)
    target = CellRef(weekday="Saturday", room_number="KT-201", slot_key=MORNING)
    queued = request_move(db, world.requester_actor, SEMESTER, source, target, cse101())
    change_id = queued.pending_change_ids[0]

    request_template_change(db, world.admin_actor, SEMESTER, "Saturday", "KT-201", MORNING, cse101("B"))
    with pytest.raises(TargetOccupied):
        approvals.approve(db, change_id, world.approver_actor)

    assert db.get(PendingChange, change_id) is not None
    assert _notifications(db, world.requester.id) == []
    assert _cell(db, "Saturday", "KT-101", MORNING) == cse101()


def test_list_pending_filters_by_requester(db, world):
    request_template_change(db, world.requester_actor, SEMESTER, "Saturday", "KT-101", MORNING, cse101())
    request_template_change(db, world.approver_actor, SEMESTER, "Saturday", "KT-201", MORNING, cse101())
    mine = approvals.list_pending(db, requester_id=world.requester.id)
    assert len(mine) == 1
    assert approvals.list_pending(db, requester_id=world.approver.id) == []
    assert len(approvals.list_pending(db, semester_id=SEMESTER)) == 1
