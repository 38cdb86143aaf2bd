from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_approver
from app.schemas.actor import ActorProfile
from app.schemas.auto_assign import AutoAssignIn, AutoAssignOut
from app.services.auto_assign import auto_assign
from app.services.notifications import publish_routine_update

router = APIRouter()


@router.post("/auto-assign", response_model=AutoAssignOut)
def run_auto_assign(
    payload: AutoAssignIn,
    actor: ActorProfile = Depends(require_approver),
    db: Session = Depends(get_db),
) -> AutoAssignOut:
    result = auto_assign(db, actor, program_pid=payload.program_pid, semester_id=payload.semester_id)
    if result.version_id is not None:
        publish_routine_update(payload.semester_id, source="auto_assign")
    return AutoAssignOut.model_validate(result)
