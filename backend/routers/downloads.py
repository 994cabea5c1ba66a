import csv
import io
import re
from collections import Counter
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from sqlalchemy.orm import Session

from database import get_db
from event_lifecycle import effective_status
from models import Admin, Event, EventStatus, Registration
from routers.events_shared import build_event_response, get_event_or_404
from schemas import DashboardSummary, RegistrationResponse
from security import ensure_owner, is_super_admin, require_admin
from time_utils import today_tz

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", value.lower())


def _tabular_response(headers: List[str], rows: List[list], filename: str, format: str, sheet_title: str) -> StreamingResponse:
    if format == "xlsx":
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_title[:31]
        ws.append(headers)
        for row in rows:
            ws.append(row)

        output = io.BytesIO()
        wb.save(output)
        output.seek(0)
        return StreamingResponse(
            output,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}.xlsx"'}
        )

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}.csv"'}
    )


def _admin_events(db: Session, admin: Admin) -> List[Event]:
    query = db.query(Event)
    if not is_super_admin(admin):
        query = query.filter(Event.created_by == admin.id)
    return query.order_by(Event.created_at.desc(), Event.id.desc()).all()


@router.get("/downloads/registrations/{event_id}")
def download_event_registrations(
    event_id: int,
    format: str = Query("json", pattern="^(json|csv|xlsx)$"),
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

    if format == "json":
        return {
            "event": {
                "name": event.name,
                "date": event.event_date,
                "cells_and_association": event.cells_and_association.value,
            },
            "registrations": [RegistrationResponse.model_validate(r) for r in registrations],
            "total": len(registrations),
        }

    headers = ["Student Name", "Email", "Phone", "Department", "Year", "Registration Date", "Status"]
    rows = [
        [
            r.student_name,
            r.student_email,
            r.student_phone,
            r.student_department,
            r.student_year,
            r.registration_date.date().isoformat() if r.registration_date else "",
            r.status.value,
        ]
        for r in registrations
    ]
    return _tabular_response(headers, rows, f"registrations-{_slugify(event.name)}", format, "Registrations")


@router.get("/downloads/events")
def download_events(
    format: str = Query("json", pattern="^(json|csv|xlsx)$"),
    cells_and_association: str = Query("ALL", alias="cellsAndAssociation"),
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    events = _admin_events(db, admin)
    if cells_and_association != "ALL":
        events = [e for e in events if e.cells_and_association.value == cells_and_association]
    today = today_tz()

    if format == "json":
        return {"events": [build_event_response(e, today) for e in events], "total": len(events)}

    headers = [
        "Event Name", "Organizing Body", "Event Type", "Registration Type", "Mode", "Date", "Venue",
        "Cells and Association", "Status", "Registration End Date", "Max Participants",
        "Current Registrations", "Created By", "Created Date",
    ]
    rows = [
        [
            e.name,
            e.organizing_body,
            ", ".join(e.event_type or []),
            e.registration_type.value,
            e.mode.value,
            e.event_date.date().isoformat(),
            e.venue or "N/A",
            e.cells_and_association.value,
            effective_status(e, today).value,
            e.registration_end_date.isoformat() if e.registration_end_date else "",
            e.max_participants,
            e.current_registrations or 0,
            e.creator.name if e.creator else "",
            e.created_at.date().isoformat() if e.created_at else "",
        ]
        for e in events
    ]
    return _tabular_response(headers, rows, f"events-report-{today.isoformat()}", format, "Events")


@router.get("/downloads/summary", response_model=DashboardSummary)
def download_summary(
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    events = _admin_events(db, admin)
    today = today_tz()
    statuses = Counter(effective_status(e, today) for e in events)

    by_department: Counter = Counter()
    event_ids = [e.id for e in events]
    if event_ids:
        rows = db.query(Registration.student_department).filter(Registration.event_id.in_(event_ids)).all()
        by_department.update(department for (department,) in rows)

    return DashboardSummary(
        total_events=len(events),
        ongoing_events=statuses[EventStatus.ONGOING],
        upcoming_events=statuses[EventStatus.UPCOMING],
        completed_events=statuses[EventStatus.COMPLETED],
        cancelled_events=statuses[EventStatus.CANCELLED],
        outer_college_events=sum(1 for e in events if e.is_outer_college_event),
        total_registrations=sum(e.current_registrations or 0 for e in events),
        registrations_by_department=dict(by_department),
    )
