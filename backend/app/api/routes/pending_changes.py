from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_actor, get_db
from app.schemas.actor import ActorProfile
from app.schemas.pending_change import PendingChangeOut, ResolutionOut
from app.services import approvals
from app.services.notifications import publish_routine_update

router = APIRouter()


def _resolution_out(resolution: approvals.Resolution) -> ResolutionOut:
    return ResolutionOut(
        change_id=resolution.change_id,
        resolved=resolution.resolved,
        notification_id=resolution.notification.id if resolution.notification is not None else None,
    )


@router.get("/pending-changes", response_model=list[PendingChangeOut])
def list_pending_changes(
    semester_id: str | None = Query(default=None),
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[PendingChangeOut]:
    requester_id = None if actor.can_approve else actor.id
    return approvals.list_pending(db, requester_id=requester_id, semester_id=semester_id)


@router.post("/pending-changes/{change_id}/approve", response_model=ResolutionOut)
def approve_change(
    change_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ResolutionOut:
    resolution = approvals.approve(db, change_id, actor)
    if resolution.resolved:
        publish_routine_update(resolution.semester_id, source="approval")
    return _resolution_out(resolution)


@router.post("/pending-changes/{change_id}/reject", response_model=ResolutionOut)
def reject_change(
    change_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ResolutionOut:
    return _resolution_out(approvals.reject(db, change_id, actor))


@router.delete("/pending-changes/{change_id}", response_model=ResolutionOut)
def cancel_change(
    change_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ResolutionOut:
    return _resolution_out(approvals.cancel(db, change_id, actor))
