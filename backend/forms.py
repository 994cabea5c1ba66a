"""View models for the admin "create event" flow.

The registration type selector and the outer college event form hold no
network logic; they collect input, validate it and hand the result to the
callbacks injected by their container.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Tuple

from posters import (
    END_DATE_REQUIRED_ERROR,
    POSTER_REQUIRED_ERROR,
    build_data_url,
    validate_poster,
)
from time_utils import today_tz

logger = logging.getLogger(__name__)

REGISTRATION_TYPE_OUTER = "outer"
REGISTRATION_TYPE_PLATFORM = "platform"
REGISTRATION_TYPES = (REGISTRATION_TYPE_OUTER, REGISTRATION_TYPE_PLATFORM)


@dataclass(frozen=True)
class PosterFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class OuterCollegeSubmission:
    poster_image: PosterFile
    registration_end_date: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "posterImage": self.poster_image,
            "registrationEndDate": self.registration_end_date,
        }

    def form_fields(self) -> Dict[str, str]:
        return {
            "registration_type": REGISTRATION_TYPE_OUTER,
            "registration_end_date": self.registration_end_date,
        }

    def files(self) -> Dict[str, Tuple[str, bytes, str]]:
        poster = self.poster_image
        return {"poster_image": (poster.filename, poster.data, poster.content_type)}


SelectCallback = Callable[[str], None]
SaveCallback = Callable[[OuterCollegeSubmission], None]
CloseCallback = Callable[[], None]


class RegistrationTypeSelector:
    def __init__(self, on_select: SelectCallback, on_close: Optional[CloseCallback] = None, is_open: bool = True):
        self.on_select = on_select
        self.on_close = on_close
        self.is_open = is_open

    def select(self, registration_type: str) -> None:
        if registration_type not in REGISTRATION_TYPES:
            raise ValueError(f"Unknown registration type: {registration_type}")
        self.is_open = False
        self.on_select(registration_type)

    def close(self) -> None:
        self.is_open = False
        if self.on_close:
            self.on_close()


class OuterCollegeEventForm:
    """Poster and registration end date collection for outer college events.

    Submission is enabled only when both a poster and a date are present.
    Poster previews are produced asynchronously; every selection bumps a
    generation counter and a finished read is applied only when it still
    belongs to the latest selection.
    """

    def __init__(
        self,
        on_save: SaveCallback,
        on_close: CloseCallback,
        is_open: bool = False,
        today: Optional[Callable[[], date]] = None,
    ):
        self.on_save = on_save
        self.on_close = on_close
        self.is_open = is_open
        self._today = today or today_tz
        self._generation = 0
        self._reset()

    def _reset(self) -> None:
        self.poster_image: Optional[PosterFile] = None
        self.poster_preview: Optional[str] = None
        self.registration_end_date = ""
        self.error = ""

    @property
    def min_date(self) -> str:
        return self._today().isoformat()

    @property
    def can_submit(self) -> bool:
        return self.poster_image is not None and bool(self.registration_end_date)

    def open(self) -> None:
        self.is_open = True

    async def select_file(self, file: Optional[PosterFile]) -> bool:
        if file is None:
            return False

        error = validate_poster(file.content_type, file.size)
        if error:
            self.error = error
            return False

        self.poster_image = file
        self.poster_preview = None
        self.error = ""
        self._generation += 1
        generation = self._generation

        preview = await asyncio.to_thread(build_data_url, file.content_type, file.data)
        if generation != self._generation:
            logger.debug("Discarding stale poster preview for %s", file.filename)
            return True
        self.poster_preview = preview
        return True

    def set_registration_end_date(self, value: Optional[str]) -> None:
        self.registration_end_date = (value or "").strip()

    def submit(self) -> bool:
        if self.poster_image is None:
            self.error = POSTER_REQUIRED_ERROR
            return False
        if not self.registration_end_date:
            self.error = END_DATE_REQUIRED_ERROR
            return False

        self.error = ""
        self.on_save(OuterCollegeSubmission(
            poster_image=self.poster_image,
            registration_end_date=self.registration_end_date,
        ))
        return True

    def remove_poster(self) -> None:
        self._generation += 1
        self.poster_image = None
        self.poster_preview = None
        self.error = ""

    def cancel(self) -> None:
        self._generation += 1
        self._reset()
        self.is_open = False
        self.on_close()
