from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from event_lifecycle import is_registration_open
from models import Admin, EventMode, OuterCollegeRegistration, OuterRegistrationStatus, ParticipationType
from routers.events_shared import get_event_or_404
from schemas import (
    OuterCollegeRegistrationCreate,
    OuterCollegeRegistrationResponse,
    OuterRegistrationStatusUpdate,
)
from security import ensure_owner, require_admin
from utils import log_admin_action

router = APIRouter()


def _get_outer_registration_or_404(db: Session, registration_id: int) -> OuterCollegeRegistration:
    registration = db.query(OuterCollegeRegistration).filter(OuterCollegeRegistration.id == registration_id).first()
    if not registration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
    return registration


@router.post(
    "/outer-college-registrations/{event_id}",
    response_model=OuterCollegeRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_outer_college(
    event_id: int,
    registration_data: OuterCollegeRegistrationCreate,
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, event_id)
    if not event.is_outer_college_event:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This is not an outer college event")
    if not is_registration_open(event):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration has ended for this event")

    existing = db.query(OuterCollegeRegistration).filter(
        OuterCollegeRegistration.event_id == event_id,
        OuterCollegeRegistration.roll_number == registration_data.roll_number
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already registered for this event")

    registration = OuterCollegeRegistration(
        event_id=event_id,
        participation_type=ParticipationType[registration_data.participation_type.name],
        participant_name=registration_data.participant_name,
        roll_number=registration_data.roll_number,
        department=registration_data.department,
        year_of_study=registration_data.year_of_study,
        contact_number=registration_data.contact_number,
        email=registration_data.email,
        mode_of_participation=EventMode[registration_data.mode_of_participation.name],
        team_members=[m.model_dump() for m in registration_data.team_members],
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already registered for this event")
    db.refresh(registration)
    return OuterCollegeRegistrationResponse.model_validate(registration)


@router.get("/outer-college-registrations/{event_id}", response_model=List[OuterCollegeRegistrationResponse])
def list_outer_college_registrations(
    event_id: int,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, event_id)
    ensure_owner(admin, event.created_by)
    registrations = (
        db.query(OuterCollegeRegistration)
        .filter(OuterCollegeRegistration.event_id == event_id)
        .order_by(OuterCollegeRegistration.created_at.desc(), OuterCollegeRegistration.id.desc())
        .all()
    )
    return [OuterCollegeRegistrationResponse.model_validate(r) for r in registrations]


@router.patch("/outer-college-registrations/{registration_id}/status", response_model=OuterCollegeRegistrationResponse)
def update_outer_college_registration_status(
    registration_id: int,
    status_data: OuterRegistrationStatusUpdate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    registration = _get_outer_registration_or_404(db, registration_id)
    ensure_owner(admin, registration.event.created_by)
    registration.status = OuterRegistrationStatus[status_data.status.name]
    db.commit()
    db.refresh(registration)
    log_admin_action(db, admin, "Update outer college registration", request, {"registration_id": registration_id, "status": status_data.status.value})
    return OuterCollegeRegistrationResponse.model_validate(registration)


@router.delete("/outer-college-registrations/{registration_id}")
def delete_outer_college_registration(
    registration_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    registration = _get_outer_registration_or_404(db, registration_id)
    ensure_owner(admin, registration.event.created_by)
    db.delete(registration)
    db.commit()
    log_admin_action(db, admin, "Delete outer college registration", request, {"registration_id": registration_id})
    return {"message": "Registration deleted"}
