from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models import Admin, Event, Notification, NotificationType
from schemas import NotificationCreate, NotificationResponse, NotificationTypeEnum, NotificationUpdate
from security import ensure_owner, require_admin
from time_utils import ensure_timezone, now_tz
from utils import log_admin_action

router = APIRouter()


def build_notification_response(notification: Notification) -> NotificationResponse:
    response = NotificationResponse.model_validate(notification)
    if notification.related_event is not None:
        response.related_event_name = notification.related_event.name
    return response


def _get_notification_or_404(db: Session, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


def _resolve_related_event(db: Session, admin: Admin, event_id: Optional[int]) -> Optional[Event]:
    if event_id is None:
        return None
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Related event not found")
    ensure_owner(admin, event.created_by)
    return event


def _mark_sent(notification: Notification) -> None:
    notification.is_sent = True
    notification.sent_at = now_tz()


@router.get("/notifications", response_model=List[NotificationResponse])
def list_notifications(
    type_filter: Optional[NotificationTypeEnum] = Query(None, alias="type"),
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(sent|scheduled)$"),
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(Notification).filter(Notification.created_by == admin.id)
    if type_filter:
        query = query.filter(Notification.type == NotificationType[type_filter.name])
    if status_filter == "sent":
        query = query.filter(Notification.is_sent == True)
    elif status_filter == "scheduled":
        query = query.filter(Notification.is_sent == False)
    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return [build_notification_response(n) for n in notifications]


@router.post("/notifications", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def create_notification(
    notification_data: NotificationCreate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    related_event = _resolve_related_event(db, admin, notification_data.related_event)
    now = now_tz()
    scheduled_for = ensure_timezone(notification_data.scheduled_for) if notification_data.scheduled_for else now

    notification = Notification(
        title=notification_data.title,
        message=notification_data.message,
        type=NotificationType[notification_data.type.name],
        target_audience=[a.value for a in notification_data.target_audience],
        related_event_id=related_event.id if related_event else None,
        scheduled_for=scheduled_for,
        created_by=admin.id,
    )
    if scheduled_for <= now:
        _mark_sent(notification)

    db.add(notification)
    db.commit()
    db.refresh(notification)
    log_admin_action(db, admin, "Create notification", request, {"notification_id": notification.id})
    return build_notification_response(notification)


@router.put("/notifications/{notification_id}", response_model=NotificationResponse)
def update_notification(
    notification_id: int,
    notification_data: NotificationUpdate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    notification = _get_notification_or_404(db, notification_id)
    ensure_owner(admin, notification.created_by)
    if notification.is_sent:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot edit sent notifications")

    if notification_data.related_event is not None:
        notification.related_event_id = _resolve_related_event(db, admin, notification_data.related_event).id
    if notification_data.title is not None:
        notification.title = notification_data.title.strip()
    if notification_data.message is not None:
        notification.message = notification_data.message.strip()
    if notification_data.type is not None:
        notification.type = NotificationType[notification_data.type.name]
    if notification_data.target_audience is not None:
        notification.target_audience = [a.value for a in notification_data.target_audience]
    if notification_data.scheduled_for is not None:
        notification.scheduled_for = ensure_timezone(notification_data.scheduled_for)

    db.commit()
    db.refresh(notification)
    log_admin_action(db, admin, "Update notification", request, {"notification_id": notification_id})
    return build_notification_response(notification)


@router.delete("/notifications/{notification_id}")
def delete_notification(
    notification_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    notification = _get_notification_or_404(db, notification_id)
    ensure_owner(admin, notification.created_by)
    db.delete(notification)
    db.commit()
    log_admin_action(db, admin, "Delete notification", request, {"notification_id": notification_id})
    return {"message": "Notification deleted successfully"}


@router.post("/notifications/{notification_id}/send", response_model=NotificationResponse)
def send_notification(
    notification_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    notification = _get_notification_or_404(db, notification_id)
    ensure_owner(admin, notification.created_by)
    if notification.is_sent:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Notification already sent")

    _mark_sent(notification)
    db.commit()
    db.refresh(notification)
    log_admin_action(db, admin, "Send notification", request, {"notification_id": notification_id})
    return build_notification_response(notification)
