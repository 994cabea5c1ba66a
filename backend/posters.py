import base64
from typing import Optional

POSTER_MAX_BYTES = 5 * 1024 * 1024

POSTER_TYPE_ERROR = "Please upload an image file"
POSTER_SIZE_ERROR = "Image size must be less than 5MB"
POSTER_REQUIRED_ERROR = "Please upload an event poster"
END_DATE_REQUIRED_ERROR = "Please select a registration end date"
END_DATE_PAST_ERROR = "Registration end date cannot be in the past"

BROCHURE_MAX_BYTES = 10 * 1024 * 1024
BROCHURE_TYPE_ERROR = "Only PDF and image files are allowed for brochure"
BROCHURE_SIZE_ERROR = "Brochure size must be less than 10MB"


def validate_poster(content_type: Optional[str], size: int) -> Optional[str]:
    """Return the user-facing error for a poster candidate, or None when it is acceptable."""
    if not content_type or not content_type.startswith("image/"):
        return POSTER_TYPE_ERROR
    if size > POSTER_MAX_BYTES:
        return POSTER_SIZE_ERROR
    return None


def validate_brochure(content_type: Optional[str], size: int) -> Optional[str]:
    if not content_type:
        return BROCHURE_TYPE_ERROR
    if content_type != "application/pdf" and not content_type.startswith("image/"):
        return BROCHURE_TYPE_ERROR
    if size > BROCHURE_MAX_BYTES:
        return BROCHURE_SIZE_ERROR
    return None


def build_data_url(content_type: str, data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"
