from __future__ import annotations

from datetime import datetime, timezone
import logging

from anyio import from_thread
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.models.notification import Notification, NotificationType
from app.services.notification_hub import notification_hub

logger = logging.getLogger(__name__)


def _safe_iso(value: datetime | None) -> str:
    if value is None:
        return datetime.now(timezone.utc).isoformat()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.isoformat()


def notification_to_event_payload(notification: Notification, *, event: str = "notification.created") -> dict:
    return {
        "event": event,
        "notification": {
            "id": notification.id,
            "user_id": notification.user_id,
            "title": notification.title,
            "message": notification.message,
            "notification_type": notification.notification_type.value,
            "related_change_id": notification.related_change_id,
            "is_read": notification.is_read,
            "created_at": _safe_iso(notification.created_at),
        },
    }


def publish_realtime_notification(notification: Notification, *, event: str = "notification.created") -> None:
    payload = notification_to_event_payload(notification, event=event)
    try:
        from_thread.run(notification_hub.publish, notification.user_id, payload)
    except Exception:  # pragma: no cover - runtime environment dependent
        logger.debug("Unable to push realtime notification for user %s", notification.user_id, exc_info=True)


def publish_routine_update(semester_id: str, *, source: str) -> None:
    """Tell every connected client that a semester's routine changed."""
    payload = {"event": "routine.updated", "semester_id": semester_id, "source": source}
    try:
        from_thread.run(notification_hub.broadcast, payload)
    except Exception:  # pragma: no cover - runtime environment dependent
        logger.debug("Unable to broadcast routine update for %s", semester_id, exc_info=True)


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.info,
    related_change_id: str | None = None,
    deliver_realtime: bool = True,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        related_change_id=related_change_id,
    )
    db.add(record)
    db.flush()

    if deliver_realtime:
        publish_realtime_notification(record, event="notification.created")
    return record


def _inbox(user_id: str):
    return select(Notification).where(Notification.user_id == user_id)


def list_inbox(
    db: Session,
    user_id: str,
    *,
    notification_type: NotificationType | None = None,
    is_read: bool | None = None,
    related_change_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Notification]:
    query = _inbox(user_id)
    if notification_type is not None:
        query = query.where(Notification.notification_type == notification_type)
    if is_read is not None:
        query = query.where(Notification.is_read.is_(is_read))
    if related_change_id:
        query = query.where(Notification.related_change_id == related_change_id)
    query = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    return list(db.execute(query).scalars())


def unread_count(db: Session, user_id: str) -> int:
    query = select(func.count()).select_from(
        _inbox(user_id).where(Notification.is_read.is_(False)).subquery()
    )
    return db.execute(query).scalar_one()


def mark_read(db: Session, user_id: str, notification_id: str) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise ResourceNotFoundError("Notification", notification_id)
    notification.is_read = True
    db.flush()
    return notification


def mark_all_read(db: Session, user_id: str) -> list[Notification]:
    unread = list(db.execute(_inbox(user_id).where(Notification.is_read.is_(False))).scalars())
    for notification in unread:
        notification.is_read = True
    db.flush()
    return unread
