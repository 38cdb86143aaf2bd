from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.api.deps import get_actor, get_db, user_from_token
from app.models.notification import NotificationType
from app.schemas.actor import ActorProfile
from app.schemas.notification import NotificationOut, UnreadCountOut
from app.services import notifications as inbox
from app.services.audit import log_activity
from app.services.notification_hub import notification_hub

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
def list_notifications(
    notification_type: NotificationType | None = Query(default=None),
    is_read: bool | None = Query(default=None),
    related_change_id: str | None = Query(default=None, max_length=36),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    return inbox.list_inbox(
        db,
        actor.id,
        notification_type=notification_type,
        is_read=is_read,
        related_change_id=related_change_id,
        limit=limit,
        offset=offset,
    )


@router.get("/notifications/unread-count", response_model=UnreadCountOut)
def count_unread(
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> UnreadCountOut:
    return UnreadCountOut(unread=inbox.unread_count(db, actor.id))


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> NotificationOut:
    notification = inbox.mark_read(db, actor.id, notification_id)
    log_activity(db, user=actor, action="notification.read", entity_type="notification", entity_id=notification_id)
    db.commit()
    db.refresh(notification)
    inbox.publish_realtime_notification(notification, event="notification.read")
    return notification


@router.post("/notifications/read-all")
def mark_all_notifications_read(
    actor: ActorProfile = Depends(get_actor),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    updated = inbox.mark_all_read(db, actor.id)
    if updated:
        log_activity(
            db,
            user=actor,
            action="notification.read_all",
            entity_type="notification",
            details={"count": len(updated)},
        )
    db.commit()
    for notification in updated:
        inbox.publish_realtime_notification(notification, event="notification.read")
    return {"updated": len(updated)}


def _socket_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    scheme, _, value = websocket.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


@router.websocket("/notifications/ws")
async def notifications_websocket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
) -> None:
    """Push decisions on the user's requests and ``routine.updated`` broadcasts."""
    token = _socket_token(websocket)
    user = user_from_token(db, token) if token else None
    if user is None or not user.is_active:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await notification_hub.connect(user.id, websocket)
    try:
        await websocket.send_json(
            {"event": "connected", "user_id": user.id, "unread": inbox.unread_count(db, user.id)}
        )
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await notification_hub.disconnect(user.id, websocket)
