from datetime import date
from typing import Optional

from models import Event, EventStatus
from time_utils import today_tz


def is_registration_ended(event: Event, today: Optional[date] = None) -> bool:
    if not event.registration_end_date:
        return False
    today = today or today_tz()
    return event.registration_end_date < today


def effective_status(event: Event, today: Optional[date] = None) -> EventStatus:
    # Registration deadline overrides the stored status, except for cancelled events.
    if event.status != EventStatus.CANCELLED and is_registration_ended(event, today):
        return EventStatus.COMPLETED
    return event.status


def is_registration_open(event: Event, today: Optional[date] = None) -> bool:
    return effective_status(event, today) not in (EventStatus.COMPLETED, EventStatus.CANCELLED)


def has_capacity(event: Event) -> bool:
    return (event.current_registrations or 0) < event.max_participants
