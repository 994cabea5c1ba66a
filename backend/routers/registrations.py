from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from event_lifecycle import has_capacity, is_registration_open
from models import Admin, Event, Registration, RegistrationStatus
from routers.events_shared import get_event_or_404
from schemas import AdminRegistrationCreate, RegistrationResponse, RegistrationStatusEnum, RegistrationStatusUpdate
from security import ensure_owner, is_super_admin, require_admin
from time_utils import now_tz
from utils import log_admin_action

router = APIRouter()


def _get_registration_or_404(db: Session, registration_id: int) -> Registration:
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if not registration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
    return registration


@router.get("/registrations", response_model=List[RegistrationResponse])
def list_registrations(
    event_id: Optional[int] = Query(None, alias="eventId"),
    status_filter: Optional[RegistrationStatusEnum] = Query(None, alias="status"),
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(Registration).join(Event, Event.id == Registration.event_id)
    if not is_super_admin(admin):
        query = query.filter(Event.created_by == admin.id)
    if event_id is not None:
        query = query.filter(Registration.event_id == event_id)
    if status_filter:
        query = query.filter(Registration.status == RegistrationStatus[status_filter.name])
    registrations = query.order_by(Registration.registration_date.desc(), Registration.id.desc()).all()
    return [RegistrationResponse.model_validate(r) for r in registrations]


@router.get("/registrations/event/{event_id}", response_model=List[RegistrationResponse])
def list_event_registrations(
    event_id: int,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, event_id)
    ensure_owner(admin, event.created_by)
    registrations = (
        db.query(Registration)
        .filter(Registration.event_id == event_id)
        .order_by(Registration.registration_date.desc(), Registration.id.desc())
        .all()
    )
    return [RegistrationResponse.model_validate(r) for r in registrations]


@router.post("/registrations", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def add_registration(
    registration_data: AdminRegistrationCreate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, registration_data.event_id)
    ensure_owner(admin, event.created_by)
    if event.is_outer_college_event:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Use the outer college registration for this event")
    if not is_registration_open(event):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration has ended for this event")

    existing = db.query(Registration).filter(
        Registration.event_id == event.id,
        Registration.student_email == registration_data.student_email
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student is already registered for this event")
    if not has_capacity(event):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event is full")

    registration = Registration(
        event_id=event.id,
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
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student is already registered for this event")
    db.refresh(registration)
    log_admin_action(db, admin, "Add registration", request, {"event_id": event.id, "registration_id": registration.id})
    return RegistrationResponse.model_validate(registration)


@router.put("/registrations/{registration_id}", response_model=RegistrationResponse)
def update_registration_status(
    registration_id: int,
    status_data: RegistrationStatusUpdate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    registration = _get_registration_or_404(db, registration_id)
    ensure_owner(admin, registration.event.created_by)
    registration.status = RegistrationStatus[status_data.status.name]
    db.commit()
    db.refresh(registration)
    log_admin_action(db, admin, "Update registration", request, {"registration_id": registration_id, "status": status_data.status.value})
    return RegistrationResponse.model_validate(registration)


@router.delete("/registrations/{registration_id}")
def delete_registration(
    registration_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    registration = _get_registration_or_404(db, registration_id)
    event = registration.event
    ensure_owner(admin, event.created_by)
    db.delete(registration)
    event.current_registrations = max((event.current_registrations or 0) - 1, 0)
    db.commit()
    log_admin_action(db, admin, "Delete registration", request, {"registration_id": registration_id, "event_id": event.id})
    return {"message": "Registration deleted successfully"}
