from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from event_lifecycle import has_capacity, is_registration_open
from models import Event, Member, Notification, Registration, RegistrationType
from routers.events_shared import build_event_response
from routers.notifications import build_notification_response
from schemas import (
    EventResponse,
    MemberResponse,
    NotificationResponse,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationTypeEnum,
)
from time_utils import now_tz, today_tz

router = APIRouter()

ABOUT_INFO = {
    "name": "Department of Information Technology",
    "associations": [
        {"code": "IT", "name": "IT Association"},
        {"code": "IIC", "name": "Institution's Innovation Council"},
        {"code": "EMDC", "name": "Entrepreneurship and Management Development Cell"},
    ],
    "contact_email": "itdept@college.edu",
}


def _published_event_or_404(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id, Event.is_published == True).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.get("/")
def root():
    return {"message": "College Events API is running"}


@router.get("/health")
def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/about")
def about():
    return ABOUT_INFO


@router.get("/events/public", response_model=List[EventResponse])
def list_public_events(
    registration_type: Optional[RegistrationTypeEnum] = Query(None, alias="registrationType"),
    limit: int = Query(default=200, ge=1, le=500),
    db: Session = Depends(get_db)
):
    query = db.query(Event).filter(Event.is_published == True)
    if registration_type:
        query = query.filter(Event.registration_type == RegistrationType[registration_type.name])
    events = query.order_by(Event.event_date.asc(), Event.id.asc()).limit(limit).all()
    today = today_tz()
    return [build_event_response(e, today) for e in events]


@router.get("/events/public/{event_id}", response_model=EventResponse)
def get_public_event(event_id: int, db: Session = Depends(get_db)):
    return build_event_response(_published_event_or_404(db, event_id))


@router.post("/events/public/{event_id}/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register_for_event(event_id: int, registration_data: RegistrationCreate, db: Session = Depends(get_db)):
    event = _published_event_or_404(db, event_id)
    if event.is_outer_college_event:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Use the outer college registration for this event")
    if not is_registration_open(event):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration has ended for this event")

    existing = db.query(Registration).filter(
        Registration.event_id == event_id,
        Registration.student_email == registration_data.student_email
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already registered for this event")
    if not has_capacity(event):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event is full")

    registration = Registration(
        event_id=event_id,
        student_name=registration_data.student_name,
        student_email=registration_data.student_email,
        student_phone=registration_data.student_phone,
        student_department=registration_data.student_department,
        student_year=registration_data.student_year,
        registration_date=now_tz(),
    )
    db.add(registration)
    event.current_registrations = (event.current_registrations or 0) + 1
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already registered for this event")
    db.refresh(registration)
    return RegistrationResponse.model_validate(registration)


@router.get("/members", response_model=List[MemberResponse])
def list_members(
    club: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    query = db.query(Member)
    if club and club != "All":
        query = query.filter(Member.club == club)
    if year and year != "All":
        query = query.filter(Member.year == year)
    members = query.order_by(Member.order.asc(), Member.name.asc()).all()
    return [MemberResponse.model_validate(m) for m in members]


@router.get("/notifications/public", response_model=List[NotificationResponse])
def list_public_notifications(
    audience: Optional[str] = Query(None),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    notifications = (
        db.query(Notification)
        .filter(Notification.is_sent == True)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
        .all()
    )
    if audience:
        notifications = [
            n for n in notifications
            if audience in (n.target_audience or []) or "All Students" in (n.target_audience or [])
        ]
    return [build_notification_response(n) for n in notifications[:limit]]
