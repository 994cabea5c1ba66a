import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from event_lifecycle import effective_status
from models import (
    Admin,
    CellsAndAssociation,
    Event,
    EventMode,
    EventStatus,
    EventType,
    RegistrationMode,
    RegistrationType,
)
from posters import END_DATE_PAST_ERROR, POSTER_REQUIRED_ERROR
from routers.events_shared import (
    build_event_response,
    get_event_or_404,
    read_event_payload,
    store_event_files,
    validate_payload,
)
from schemas import EventCreate, EventResponse, EventStatusEnum, EventUpdate, RegistrationTypeEnum
from security import ensure_owner, require_admin, scope_events
from time_utils import today_tz
from utils import log_admin_action

router = APIRouter()
logger = logging.getLogger(__name__)


def _ensure_association(admin: Admin, cells_and_association: CellsAndAssociation) -> None:
    if admin.cells_and_association != CellsAndAssociation.OT and admin.cells_and_association != cells_and_association:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


@router.get("/events", response_model=List[EventResponse])
def list_events(
    cells_and_association: Optional[str] = Query(None, alias="cellsAndAssociation"),
    status_filter: Optional[EventStatusEnum] = Query(None, alias="status"),
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = scope_events(db.query(Event), admin, cells_and_association)
    events = query.order_by(Event.created_at.desc(), Event.id.desc()).all()
    today = today_tz()
    if status_filter:
        events = [e for e in events if effective_status(e, today).value == status_filter.value]
    return [build_event_response(e, today) for e in events]


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    event_id: int,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, event_id)
    ensure_owner(admin, event.created_by)
    return build_event_response(event)


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    payload, files = await read_event_payload(request)
    event_data: EventCreate = validate_payload(EventCreate, payload)
    cells = CellsAndAssociation[event_data.cells_and_association.name]
    _ensure_association(admin, cells)

    if event_data.registration_type == RegistrationTypeEnum.OUTER and "poster_image" not in files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=POSTER_REQUIRED_ERROR)
    if event_data.registration_end_date and event_data.registration_end_date < today_tz():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=END_DATE_PAST_ERROR)

    stored = await store_event_files(files)

    new_event = Event(
        name=event_data.name,
        organizing_body=event_data.organizing_body,
        event_type=[EventType[t.name].value for t in event_data.event_type],
        registration_mode=RegistrationMode[event_data.registration_mode.name],
        registration_type=RegistrationType[event_data.registration_type.name],
        mode=EventMode[event_data.mode.name],
        event_date=event_data.event_date,
        venue=event_data.venue,
        coordinator_name=event_data.event_coordinator.name,
        coordinator_contact=event_data.event_coordinator.contact,
        cells_and_association=cells,
        poster_image=stored.get("poster_image"),
        brochure=stored.get("brochure"),
        description=event_data.description,
        rules=event_data.rules,
        event_link=event_data.event_link,
        whatsapp_group_link=event_data.whatsapp_group_link,
        registration_link=event_data.registration_link,
        max_participants=event_data.max_participants,
        current_registrations=0,
        status=EventStatus[event_data.status.name],
        is_published=event_data.is_published,
        registration_end_date=event_data.registration_end_date,
        created_by=admin.id,
    )
    db.add(new_event)
    db.commit()
    db.refresh(new_event)
    logger.info("Event %s created by %s", new_event.id, admin.email)
    log_admin_action(db, admin, "Create event", request, {"event_id": new_event.id, "registration_type": new_event.registration_type.value})
    return build_event_response(new_event)


@router.put("/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, event_id)
    ensure_owner(admin, event.created_by)

    payload, files = await read_event_payload(request)
    event_data: EventUpdate = validate_payload(EventUpdate, payload)

    if event_data.registration_end_date is not None:
        if event_data.registration_end_date < today_tz():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=END_DATE_PAST_ERROR)
        event.registration_end_date = event_data.registration_end_date

    if event_data.name is not None:
        event.name = event_data.name.strip()
    if event_data.organizing_body is not None:
        event.organizing_body = event_data.organizing_body.strip()
    if event_data.event_type is not None:
        event.event_type = [EventType[t.name].value for t in event_data.event_type]
    if event_data.registration_mode is not None:
        event.registration_mode = RegistrationMode[event_data.registration_mode.name]
    if event_data.mode is not None:
        event.mode = EventMode[event_data.mode.name]
    if event_data.event_date is not None:
        event.event_date = event_data.event_date
    if event_data.venue is not None:
        event.venue = event_data.venue.strip() or None
    if event_data.event_coordinator is not None:
        event.coordinator_name = event_data.event_coordinator.name
        event.coordinator_contact = event_data.event_coordinator.contact
    if event_data.description is not None:
        event.description = event_data.description
    if event_data.rules is not None:
        event.rules = event_data.rules
    if event_data.event_link is not None:
        event.event_link = event_data.event_link.strip() or None
    if event_data.whatsapp_group_link is not None:
        event.whatsapp_group_link = event_data.whatsapp_group_link.strip() or None
    if event_data.registration_link is not None:
        event.registration_link = event_data.registration_link
    if event_data.max_participants is not None:
        event.max_participants = event_data.max_participants
    if event_data.status is not None:
        event.status = EventStatus[event_data.status.name]
    if event_data.is_published is not None:
        event.is_published = event_data.is_published

    if event.mode == EventMode.OFFLINE and not event.venue:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Venue is required for offline events")

    stored = await store_event_files(files)
    if "poster_image" in stored:
        event.poster_image = stored["poster_image"]
    if "brochure" in stored:
        event.brochure = stored["brochure"]

    db.commit()
    db.refresh(event)
    log_admin_action(db, admin, "Update event", request, {"event_id": event_id})
    return build_event_response(event)


@router.delete("/events/{event_id}")
def delete_event(
    event_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    event = get_event_or_404(db, event_id)
    ensure_owner(admin, event.created_by)
    db.delete(event)
    db.commit()
    log_admin_action(db, admin, "Delete event", request, {"event_id": event_id})
    return {"message": "Event deleted successfully"}
