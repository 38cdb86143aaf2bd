from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_actor, get_db
from app.schemas.actor import ActorProfile
from app.schemas.routine import ClassDetail
from app.schemas.slots import SlotKey
from app.services.overrides import get_override_map, get_overrides

router = APIRouter()


@router.get("/overrides")
def list_overrides(
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> dict[str, dict[str, dict[str, ClassDetail | None]]]:
    return get_override_map(db)


@router.get("/overrides/{room_number}/{slot_key}")
def overrides_for_slot(
    room_number: str,
    slot_key: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> dict[date, ClassDetail | None]:
    try:
        key = SlotKey(slot_key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return get_overrides(db, room_number, key)
