import json
import re
from datetime import date
from typing import Dict, List, Optional, Tuple, Type

from fastapi import HTTPException, Request, UploadFile, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from event_lifecycle import effective_status, is_registration_open
from models import Event
from posters import validate_brochure, validate_poster
from schemas import EventCoordinator, EventResponse
from utils import store_upload

NESTED_KEY_RE = re.compile(r"^([A-Za-z_]+)(?:\[([A-Za-z_]+)\]|\.([A-Za-z_]+))$")
LIST_FIELDS = {"event_type", "eventType"}
FILE_FIELDS = {"poster_image", "posterImage", "brochure"}


def build_event_response(event: Event, today: Optional[date] = None) -> EventResponse:
    current = effective_status(event, today)
    return EventResponse(
        id=event.id,
        name=event.name,
        organizing_body=event.organizing_body,
        event_type=list(event.event_type or []),
        registration_mode=event.registration_mode.value,
        registration_type=event.registration_type.value,
        is_outer_college_event=event.is_outer_college_event,
        mode=event.mode.value,
        event_date=event.event_date,
        venue=event.venue,
        event_coordinator=EventCoordinator(name=event.coordinator_name, contact=event.coordinator_contact),
        cells_and_association=event.cells_and_association.value,
        poster_image=event.poster_image,
        brochure=event.brochure,
        description=event.description,
        rules=event.rules,
        event_link=event.event_link,
        whatsapp_group_link=event.whatsapp_group_link,
        registration_link=event.registration_link,
        max_participants=event.max_participants,
        current_registrations=event.current_registrations or 0,
        status=event.status.value,
        effective_status=current.value,
        registration_open=is_registration_open(event, today),
        is_published=bool(event.is_published),
        registration_end_date=event.registration_end_date,
        created_by=event.created_by,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def get_event_or_404(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def _validation_detail(exc: ValidationError) -> List[Dict[str, str]]:
    errors = []
    for err in exc.errors(include_url=False, include_context=False, include_input=False):
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({
            "field": ".".join(str(part) for part in err.get("loc", ())) or "body",
            "message": message,
        })
    return errors


def validate_payload(schema: Type[BaseModel], payload: dict) -> BaseModel:
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Validation errors", "errors": _validation_detail(exc)},
        ) from exc


def _parse_list_value(values: List[str]) -> List[str]:
    # A single value may be a JSON-encoded array.
    if len(values) == 1:
        raw = values[0].strip()
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event type list") from exc
            return [str(item) for item in parsed]
        return [raw] if raw else []
    return [value for value in values if value]


async def read_event_payload(request: Request) -> Tuple[dict, Dict[str, UploadFile]]:
    """Read an event body from either JSON or multipart form data."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body") from exc
        if not isinstance(body, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
        return body, {}

    form = await request.form()
    payload: dict = {}
    files: Dict[str, UploadFile] = {}
    for key in set(form.keys()):
        values = form.getlist(key)
        if key in FILE_FIELDS:
            upload = values[-1]
            if isinstance(upload, StarletteUploadFile) and upload.filename:
                files["poster_image" if key != "brochure" else "brochure"] = upload
            continue
        if key in LIST_FIELDS:
            payload[key] = _parse_list_value([str(v) for v in values])
            continue
        value = values[-1]
        match = NESTED_KEY_RE.match(key)
        if match:
            parent, child = match.group(1), match.group(2) or match.group(3)
            payload.setdefault(parent, {})[child] = value
        elif value == "":
            continue
        else:
            payload[key] = value
    return payload, files


UPLOAD_RULES = {
    "poster_image": (validate_poster, "posters", "posterImage"),
    "brochure": (validate_brochure, "brochures", "brochure"),
}


async def store_event_files(files: Dict[str, UploadFile]) -> Dict[str, str]:
    """Validate every upload, then store them and return their URLs by field."""
    accepted = []
    for field, upload in files.items():
        validator, folder, prefix = UPLOAD_RULES[field]
        contents = await upload.read()
        error = validator(upload.content_type, len(contents))
        if error:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)
        accepted.append((field, folder, prefix, upload, contents))

    return {
        field: store_upload(contents, folder, prefix, upload.filename, upload.content_type)
        for field, folder, prefix, upload, contents in accepted
    }
