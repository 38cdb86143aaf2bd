from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_actor, get_db
from app.core.config import get_settings
from app.core.exceptions import PermissionDenied
from app.schemas.actor import ActorProfile
from app.schemas.schedule_log import ClearLogOut, ScheduleLogPage
from app.services.audit import clear_log, query_log

router = APIRouter()


@router.get("/schedule-log", response_model=ScheduleLogPage)
def list_schedule_log(
    semester_id: str | None = Query(default=None),
    room_number: str | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ScheduleLogPage:
    limit = min(limit, get_settings().schedule_log_page_max)
    total, items = query_log(
        db,
        semester_id=semester_id,
        room_number=room_number,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return ScheduleLogPage(total=total, limit=limit, offset=offset, items=items)


@router.delete("/schedule-log", response_model=ClearLogOut)
def clear_schedule_log(
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ClearLogOut:
    if not actor.is_admin:
        raise PermissionDenied("Only administrators can clear the schedule log")
    entries_removed, overrides_removed = clear_log(db, actor=actor)
    db.commit()
    return ClearLogOut(entries_removed=entries_removed, overrides_removed=overrides_removed)
