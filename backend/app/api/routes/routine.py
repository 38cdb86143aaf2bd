from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_actor, get_db, require_approver
from app.core.exceptions import PermissionDenied
from app.schemas.actor import ActorProfile
from app.schemas.routine import (
    ActiveRoutineOut,
    DayCellOut,
    DayViewOut,
    MoveRequestIn,
    MutationOutcomeOut,
    OverrideChangeIn,
    RoutineVersionOut,
    SaveVersionIn,
    SectionAssignIn,
    SuggestionIn,
    TemplateChangeIn,
    VersionCompareOut,
)
from app.schemas.slots import weekday_of
from app.services import routine_store
from app.services.audit import log_activity
from app.services.mutation_router import (
    MutationOutcome,
    MutationStatus,
    apply_suggestion,
    assign_section,
    request_move,
    request_override_change,
    request_template_change,
)
from app.services.notifications import publish_routine_update
from app.services.overrides import materialize_date

router = APIRouter()


def _outcome_out(semester_id: str, outcome: MutationOutcome, *, source: str) -> MutationOutcomeOut:
    if outcome.status == MutationStatus.applied:
        publish_routine_update(semester_id, source=source)
    return MutationOutcomeOut(
        status=outcome.status.value,
        log_entry_ids=outcome.log_entry_ids,
        pending_change_ids=outcome.pending_change_ids,
    )


def _version_out(version, active_version_id: str | None) -> RoutineVersionOut:
    out = RoutineVersionOut.model_validate(version)
    out.is_active = version.id == active_version_id
    return out


@router.get("/routine/{semester_id}", response_model=ActiveRoutineOut)
def get_active_routine(
    semester_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ActiveRoutineOut:
    version = routine_store.get_active_version(db, semester_id)
    return ActiveRoutineOut(
        semester_id=semester_id,
        active_version_id=version.id if version is not None else None,
        routine=version.routine if version is not None else {},
    )


@router.put("/routine/{semester_id}/cells", response_model=MutationOutcomeOut)
def update_template_cell(
    semester_id: str,
    payload: TemplateChangeIn,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> MutationOutcomeOut:
    outcome = request_template_change(
        db,
        actor,
        semester_id,
        payload.weekday,
        payload.room_number,
        payload.slot_key,
        payload.new_class,
    )
    return _outcome_out(semester_id, outcome, source="template")


@router.put("/routine/{semester_id}/overrides", response_model=MutationOutcomeOut)
def update_overrides(
    semester_id: str,
    payload: OverrideChangeIn,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> MutationOutcomeOut:
    outcome = request_override_change(
        db,
        actor,
        semester_id,
        payload.room_number,
        payload.slot_key,
        payload.assignments,
        payload.default_for_slot,
    )
    return _outcome_out(semester_id, outcome, source="override")


@router.post("/routine/{semester_id}/move", response_model=MutationOutcomeOut)
def move_class(
    semester_id: str,
    payload: MoveRequestIn,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> MutationOutcomeOut:
    outcome = request_move(db, actor, semester_id, payload.source, payload.target, payload.moving_class)
    return _outcome_out(semester_id, outcome, source="move")


@router.post("/routine/{semester_id}/suggestions/apply", response_model=MutationOutcomeOut)
def apply_conflict_suggestion(
    semester_id: str,
    payload: SuggestionIn,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> MutationOutcomeOut:
    outcome = apply_suggestion(db, actor, semester_id, payload.source, payload.target)
    return _outcome_out(semester_id, outcome, source="suggestion")


@router.post("/routine/{semester_id}/sections/assign", response_model=MutationOutcomeOut)
def assign_catalog_section(
    semester_id: str,
    payload: SectionAssignIn,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> MutationOutcomeOut:
    outcome = assign_section(db, actor, semester_id, payload.section_id, payload.target)
    return _outcome_out(semester_id, outcome, source="template")


@router.get("/routine/{semester_id}/versions", response_model=list[RoutineVersionOut])
def list_versions(
    semester_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[RoutineVersionOut]:
    record = routine_store.get_semester(db, semester_id)
    active_version_id = record.active_version_id if record is not None else None
    return [_version_out(item, active_version_id) for item in routine_store.list_versions(db, semester_id)]


@router.post(
    "/routine/{semester_id}/versions",
    response_model=RoutineVersionOut,
    status_code=status.HTTP_201_CREATED,
)
def save_as_new_version(
    semester_id: str,
    payload: SaveVersionIn,
    actor: ActorProfile = Depends(require_approver),
    db: Session = Depends(get_db),
) -> RoutineVersionOut:
    version_id = routine_store.save_as_new_version(db, semester_id, created_by_id=actor.id, label=payload.label)
    log_activity(
        db,
        user=actor,
        action="routine.version_saved",
        semester_id=semester_id,
        entity_type="routine_version",
        entity_id=version_id,
    )
    db.commit()
    version = routine_store.get_active_version(db, semester_id)
    return _version_out(version, version_id)


@router.get("/routine/{semester_id}/versions/compare", response_model=VersionCompareOut)
def compare_versions(
    semester_id: str,
    from_version_id: str = Query(min_length=1),
    to_version_id: str = Query(min_length=1),
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> VersionCompareOut:
    counts = routine_store.compare_versions(db, semester_id, from_version_id, to_version_id)
    return VersionCompareOut(from_version_id=from_version_id, to_version_id=to_version_id, **counts)


@router.put("/routine/{semester_id}/versions/{version_id}/activate", response_model=RoutineVersionOut)
def activate_version(
    semester_id: str,
    version_id: str,
    actor: ActorProfile = Depends(require_approver),
    db: Session = Depends(get_db),
) -> RoutineVersionOut:
    routine_store.set_active(db, semester_id, version_id)
    log_activity(
        db,
        user=actor,
        action="routine.version_activated",
        semester_id=semester_id,
        entity_type="routine_version",
        entity_id=version_id,
    )
    db.commit()
    publish_routine_update(semester_id, source="version")
    return _version_out(routine_store.get_active_version(db, semester_id), version_id)


@router.delete("/routine/{semester_id}/versions/{version_id}")
def delete_version(
    semester_id: str,
    version_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> dict:
    if not actor.is_admin:
        raise PermissionDenied("Only administrators can delete routine versions")
    routine_store.delete_version(db, semester_id, version_id)
    log_activity(
        db,
        user=actor,
        action="routine.version_deleted",
        semester_id=semester_id,
        entity_type="routine_version",
        entity_id=version_id,
    )
    db.commit()
    return {"success": True}


@router.get("/routine/{semester_id}/dates/{target_date}", response_model=DayViewOut)
def day_view(
    semester_id: str,
    target_date: date,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> DayViewOut:
    cells = [
        DayCellOut(room_number=room_number, slot_key=slot_key, class_detail=detail, is_override=from_override)
        for room_number, slot_key, detail, from_override in materialize_date(db, semester_id, target_date)
    ]
    return DayViewOut(semester_id=semester_id, date=target_date, weekday=weekday_of(target_date), cells=cells)
