"""Resolution of queued change requests.

Each resolution runs in one semester transaction: the replayed mutation, the
removal of the request and the requester's notification commit together or
not at all. A change id that is no longer queued comes back with
``resolved=False`` and touches nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import PermissionDenied, StaleApproval
from app.models.notification import Notification, NotificationType
from app.models.pending_change import PendingChange, PendingChangeKind, PendingChangeStatus
from app.schemas.actor import ActorProfile
from app.schemas.routine import CellRef, class_from_snapshot
from app.services.locks import semester_transaction
from app.services.mutation_router import (
    request_move,
    request_override_change,
    request_template_change,
)
from app.services.notifications import create_notification, publish_realtime_notification
from app.services.overrides import get_overrides
from app.services.routine_store import get_active_routine, get_cell

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    change_id: str
    resolved: bool
    semester_id: str | None = None
    notification: Notification | None = None


def list_pending(
    db: Session,
    *,
    requester_id: str | None = None,
    semester_id: str | None = None,
) -> list[PendingChange]:
    query = select(PendingChange).where(PendingChange.status == PendingChangeStatus.open)
    if requester_id:
        query = query.where(PendingChange.requester_id == requester_id)
    if semester_id:
        query = query.where(PendingChange.semester_id == semester_id)
    return list(db.execute(query.order_by(PendingChange.created_at.desc())).scalars())


def _open_change(db: Session, change_id: str) -> PendingChange:
    change = db.execute(
        select(PendingChange)
        .where(PendingChange.id == change_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if change is None or change.status != PendingChangeStatus.open:
        raise StaleApproval(change_id)
    return change


def _target_label(change: PendingChange) -> str:
    if change.is_bulk_update:
        return change.weekday
    return ", ".join(change.dates or [])


def _replay(db: Session, change: PendingChange, approver: ActorProfile) -> None:
    requested = class_from_snapshot(change.requested_class)
    if change.kind == PendingChangeKind.bulk:
        request_template_change(
            db,
            approver,
            change.semester_id,
            change.weekday,
            change.room_number,
            change.slot_key,
            requested,
            force=True,
        )
    elif change.kind == PendingChangeKind.override_batch:
        default = get_cell(
            get_active_routine(db, change.semester_id), change.weekday, change.room_number, change.slot_key
        )
        assignments = get_overrides(db, change.room_number, change.slot_key)
        for item in change.dates or []:
            assignments[date.fromisoformat(item)] = requested
        request_override_change(
            db,
            approver,
            change.semester_id,
            change.room_number,
            change.slot_key,
            assignments,
            default,
            force=True,
        )
    else:
        request_move(
            db,
            approver,
            change.semester_id,
            CellRef.model_validate(change.source),
            CellRef(weekday=change.weekday, room_number=change.room_number, slot_key=change.slot_key),
            requested,
            force=True,
        )


def _resolve(
    db: Session,
    change_id: str,
    actor: ActorProfile,
    status: PendingChangeStatus,
) -> Resolution:
    stub = db.get(PendingChange, change_id)
    if stub is None:
        logger.debug("Ignoring %s of unknown change %s", status.value, change_id)
        return Resolution(change_id, resolved=False)

    semester_id = stub.semester_id
    notification = None
    try:
        with semester_transaction(db, semester_id):
            change = _open_change(db, change_id)
            if status == PendingChangeStatus.approved:
                _replay(db, change, actor)
                requested = class_from_snapshot(change.requested_class)
                what = f"assign {requested.course_code}" if requested is not None else "clear the slot"
                notification = create_notification(
                    db,
                    user_id=change.requester_id,
                    title="Request Approved",
                    message=(
                        f"Your request to {what} for Room {change.room_number} on "
                        f"{_target_label(change)} has been approved."
                    ),
                    notification_type=NotificationType.approval,
                    related_change_id=change.id,
                    deliver_realtime=False,
                )
            elif status == PendingChangeStatus.rejected:
                notification = create_notification(
                    db,
                    user_id=change.requester_id,
                    title="Request Rejected",
                    message=(
                        f"Your request for Room {change.room_number} on "
                        f"{_target_label(change)} has been rejected."
                    ),
                    notification_type=NotificationType.rejection,
                    related_change_id=change.id,
                    deliver_realtime=False,
                )
            change.status = status
            db.delete(change)
    except StaleApproval:
        logger.debug("Change %s was already resolved", change_id)
        return Resolution(change_id, resolved=False)

    logger.info("Change %s %s by %s", change_id, status.value, actor.id)
    if notification is not None:
        publish_realtime_notification(notification)
    return Resolution(change_id, resolved=True, semester_id=semester_id, notification=notification)


def approve(db: Session, change_id: str, approver: ActorProfile) -> Resolution:
    if not approver.can_approve:
        raise PermissionDenied("Only approvers can resolve change requests")
    return _resolve(db, change_id, approver, PendingChangeStatus.approved)


def reject(db: Session, change_id: str, approver: ActorProfile) -> Resolution:
    if not approver.can_approve:
        raise PermissionDenied("Only approvers can resolve change requests")
    return _resolve(db, change_id, approver, PendingChangeStatus.rejected)


def cancel(db: Session, change_id: str, requester: ActorProfile) -> Resolution:
    """Withdraw an open change; no notification is sent."""
    change = db.get(PendingChange, change_id)
    if change is None:
        return Resolution(change_id, resolved=False)
    if change.requester_id != requester.id and not requester.is_admin:
        raise PermissionDenied("Only the requester can withdraw this change")
    return _resolve(db, change_id, requester, PendingChangeStatus.cancelled)
