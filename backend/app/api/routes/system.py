from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.models.user import User, UserRole
from app.schemas.actor import ActorProfile
from app.schemas.state import PersistedState, StateImportOut
from app.services.state_export import export_state, import_state

router = APIRouter()


@router.get("/system/state")
def get_state(
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    return export_state(db).model_dump(mode="json", by_alias=True)


@router.put("/system/state", response_model=StateImportOut)
def replace_state(
    payload: PersistedState,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> StateImportOut:
    result = import_state(db, payload, actor=ActorProfile.from_user(current_user))
    db.commit()
    return result
