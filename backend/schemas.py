from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
from enum import Enum
from datetime import datetime, date

from posters import END_DATE_REQUIRED_ERROR


class CellsAndAssociationEnum(str, Enum):
    IT = "IT"
    IIC = "IIC"
    EMDC = "EMDC"
    OT = "OT"


class AdminRoleEnum(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class EventTypeEnum(str, Enum):
    HACKATHON = "Hackathon"
    WORKSHOP = "Workshop"
    INTER_COLLEGE = "Inter College"
    INTRA_COLLEGE = "Intra College"
    FUN_EVENT = "Fun Event"


class RegistrationModeEnum(str, Enum):
    PLATFORM = "Platform"
    GOOGLE_FORMS = "Google Forms"


class RegistrationTypeEnum(str, Enum):
    OUTER = "outer"
    PLATFORM = "platform"


class EventModeEnum(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


class EventStatusEnum(str, Enum):
    ONGOING = "Ongoing"
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class RegistrationStatusEnum(str, Enum):
    REGISTERED = "Registered"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class ParticipationTypeEnum(str, Enum):
    SOLO = "solo"
    TEAM = "team"


class OuterRegistrationStatusEnum(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class NotificationTypeEnum(str, Enum):
    NEW_EVENT = "New Event"
    EVENT_REMINDER = "Event Reminder"
    REGISTRATION_CLOSING = "Registration Closing"
    GENERAL = "General"


class TargetAudienceEnum(str, Enum):
    ALL_STUDENTS = "All Students"
    IT_DEPARTMENT = "IT Department"
    IIC_DEPARTMENT = "IIC Department"
    EMDC_DEPARTMENT = "EMDC Department"


YEAR_OF_STUDY_VALUES = {"1", "2", "3", "4", ""}
MAX_TEAM_MEMBERS = 5


def _normalize_optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None


def _coerce_date(value: Any) -> Any:
    # Clients send either "YYYY-MM-DD" or a full ISO timestamp.
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        return raw.split("T", 1)[0]
    if isinstance(value, datetime):
        return value.date()
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="before")
    @classmethod
    def _unwrap_enum(cls, value):
        if isinstance(value, Enum):
            return value.value
        return value


# Auth Schemas
class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class AdminResponse(ORMResponse):
    id: int
    name: str
    email: str
    role: AdminRoleEnum
    cells_and_association: CellsAndAssociationEnum
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    admin: AdminResponse


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class AdminCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: AdminRoleEnum = AdminRoleEnum.ADMIN
    cells_and_association: CellsAndAssociationEnum


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    cells_and_association: Optional[CellsAndAssociationEnum] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v

    @field_validator("cells_and_association")
    @classmethod
    def validate_cells(cls, v):
        if v == CellsAndAssociationEnum.OT:
            raise ValueError("Invalid Cells and Association")
        return v


class PasswordChangeRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


# Event Schemas
class EventCoordinator(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact: str = Field(..., min_length=1, max_length=50)

    @field_validator("name", "contact", mode="before")
    @classmethod
    def strip_values(cls, v):
        return v.strip() if isinstance(v, str) else v


class EventCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    organizing_body: str = Field(..., min_length=1, max_length=255)
    event_type: List[EventTypeEnum] = Field(default_factory=list)
    registration_mode: RegistrationModeEnum = RegistrationModeEnum.PLATFORM
    registration_type: RegistrationTypeEnum = RegistrationTypeEnum.PLATFORM
    mode: EventModeEnum
    event_date: datetime
    venue: Optional[str] = None
    event_coordinator: EventCoordinator
    cells_and_association: CellsAndAssociationEnum
    description: str = Field(..., min_length=1)
    rules: str = Field(..., min_length=1)
    event_link: Optional[str] = None
    whatsapp_group_link: Optional[str] = None
    registration_link: str = Field(..., min_length=1, max_length=500)
    max_participants: int = Field(..., ge=1)
    status: EventStatusEnum = EventStatusEnum.UPCOMING
    is_published: bool = False
    registration_end_date: Optional[date] = None

    @field_validator("name", "organizing_body", "description", "rules", "registration_link", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("venue", "event_link", "whatsapp_group_link")
    @classmethod
    def normalize_optional(cls, v):
        return _normalize_optional_text(v)

    @field_validator("registration_end_date", mode="before")
    @classmethod
    def parse_end_date(cls, v):
        return _coerce_date(v)

    @field_validator("cells_and_association")
    @classmethod
    def validate_cells(cls, v):
        if v == CellsAndAssociationEnum.OT:
            raise ValueError("Invalid Cells and Association")
        return v

    @model_validator(mode="after")
    def validate_dependent_fields(self):
        if self.mode == EventModeEnum.OFFLINE and not self.venue:
            raise ValueError("Venue is required for offline events")
        if self.registration_type == RegistrationTypeEnum.OUTER and not self.registration_end_date:
            raise ValueError(END_DATE_REQUIRED_ERROR)
        return self


class EventUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    organizing_body: Optional[str] = Field(None, min_length=1, max_length=255)
    event_type: Optional[List[EventTypeEnum]] = None
    registration_mode: Optional[RegistrationModeEnum] = None
    mode: Optional[EventModeEnum] = None
    event_date: Optional[datetime] = None
    venue: Optional[str] = None
    event_coordinator: Optional[EventCoordinator] = None
    description: Optional[str] = Field(None, min_length=1)
    rules: Optional[str] = Field(None, min_length=1)
    event_link: Optional[str] = None
    whatsapp_group_link: Optional[str] = None
    registration_link: Optional[str] = Field(None, min_length=1, max_length=500)
    max_participants: Optional[int] = Field(None, ge=1)
    status: Optional[EventStatusEnum] = None
    is_published: Optional[bool] = None
    registration_end_date: Optional[date] = None

    @field_validator("name", "organizing_body", "description", "rules", "registration_link", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("registration_end_date", mode="before")
    @classmethod
    def parse_end_date(cls, v):
        return _coerce_date(v)


class EventResponse(BaseModel):
    id: int
    name: str
    organizing_body: str
    event_type: List[str] = []
    registration_mode: RegistrationModeEnum
    registration_type: RegistrationTypeEnum
    is_outer_college_event: bool
    mode: EventModeEnum
    event_date: datetime
    venue: Optional[str] = None
    event_coordinator: EventCoordinator
    cells_and_association: CellsAndAssociationEnum
    poster_image: Optional[str] = None
    brochure: Optional[str] = None
    description: str
    rules: str
    event_link: Optional[str] = None
    whatsapp_group_link: Optional[str] = None
    registration_link: str
    max_participants: int
    current_registrations: int
    status: EventStatusEnum
    effective_status: EventStatusEnum
    registration_open: bool
    is_published: bool
    registration_end_date: Optional[date] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Registration Schemas
class RegistrationCreate(CamelModel):
    student_name: str = Field(..., min_length=1, max_length=255)
    student_email: EmailStr
    student_phone: str = Field(..., min_length=10, max_length=20)
    student_department: str = Field(..., min_length=1, max_length=150)
    student_year: str = Field(..., min_length=1, max_length=20)

    @field_validator("student_email")
    @classmethod
    def lower_email(cls, v):
        return str(v).strip().lower()


class AdminRegistrationCreate(RegistrationCreate):
    event_id: int


class RegistrationStatusUpdate(BaseModel):
    status: RegistrationStatusEnum


class RegistrationResponse(ORMResponse):
    id: int
    event_id: int
    student_name: str
    student_email: str
    student_phone: str
    student_department: str
    student_year: str
    registration_date: Optional[datetime] = None
    status: RegistrationStatusEnum


# Outer College Registration Schemas
class TeamMember(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    roll_number: str = Field(..., min_length=1, max_length=50)
    department: str = ""
    year_of_study: str = ""
    contact_number: str = ""

    @field_validator("year_of_study")
    @classmethod
    def validate_year(cls, v):
        if v not in YEAR_OF_STUDY_VALUES:
            raise ValueError("Year of study must be 1, 2, 3 or 4")
        return v


class OuterCollegeRegistrationCreate(CamelModel):
    participation_type: ParticipationTypeEnum = ParticipationTypeEnum.SOLO
    participant_name: str = Field(..., min_length=1, max_length=255)
    roll_number: str = Field(..., min_length=1, max_length=50)
    department: Optional[str] = None
    year_of_study: str = ""
    contact_number: str
    email: Optional[EmailStr] = None
    mode_of_participation: EventModeEnum = EventModeEnum.OFFLINE
    team_members: List[TeamMember] = Field(default_factory=list)

    @field_validator("participant_name", "roll_number", "contact_number", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("department")
    @classmethod
    def normalize_department(cls, v):
        return _normalize_optional_text(v)

    @field_validator("year_of_study")
    @classmethod
    def validate_year(cls, v):
        if v not in YEAR_OF_STUDY_VALUES:
            raise ValueError("Year of study must be 1, 2, 3 or 4")
        return v

    @field_validator("contact_number")
    @classmethod
    def validate_contact(cls, v):
        if len(v) != 10 or not v.isdigit():
            raise ValueError("Contact number must be 10 digits")
        return v

    @field_validator("team_members")
    @classmethod
    def validate_team_size(cls, v):
        if len(v) > MAX_TEAM_MEMBERS:
            raise ValueError(f"Maximum {MAX_TEAM_MEMBERS} team members allowed")
        return v


class OuterRegistrationStatusUpdate(BaseModel):
    status: OuterRegistrationStatusEnum


class OuterCollegeRegistrationResponse(ORMResponse):
    id: int
    event_id: int
    participation_type: ParticipationTypeEnum
    participant_name: str
    roll_number: str
    department: Optional[str] = None
    year_of_study: str = ""
    contact_number: str
    email: Optional[str] = None
    mode_of_participation: EventModeEnum
    team_members: List[dict] = []
    status: OuterRegistrationStatusEnum
    created_at: Optional[datetime] = None

    @field_validator("team_members", mode="before")
    @classmethod
    def default_team(cls, v):
        return v or []


# Notification Schemas
class NotificationCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationTypeEnum
    target_audience: List[TargetAudienceEnum] = Field(..., min_length=1)
    related_event: Optional[int] = None
    scheduled_for: Optional[datetime] = None

    @field_validator("title", "message", mode="before")
    @classmethod
    def strip_values(cls, v):
        return v.strip() if isinstance(v, str) else v


class NotificationUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)
    type: Optional[NotificationTypeEnum] = None
    target_audience: Optional[List[TargetAudienceEnum]] = Field(None, min_length=1)
    related_event: Optional[int] = None
    scheduled_for: Optional[datetime] = None


class NotificationResponse(ORMResponse):
    id: int
    title: str
    message: str
    type: NotificationTypeEnum
    target_audience: List[TargetAudienceEnum]
    related_event_id: Optional[int] = None
    related_event_name: Optional[str] = None
    scheduled_for: datetime
    is_sent: bool
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# Member Schemas
class MemberCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=120)
    year: Optional[str] = None
    club: Optional[str] = None
    image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    email: Optional[EmailStr] = None
    order: int = 0


class MemberUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[str] = Field(None, min_length=1, max_length=120)
    year: Optional[str] = None
    club: Optional[str] = None
    image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    email: Optional[EmailStr] = None
    order: Optional[int] = None


class MemberResponse(ORMResponse):
    id: int
    name: str
    role: str
    year: Optional[str] = None
    club: Optional[str] = None
    image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    email: Optional[str] = None
    order: int = 0


# Dashboard
class DashboardSummary(BaseModel):
    total_events: int
    ongoing_events: int
    upcoming_events: int
    completed_events: int
    cancelled_events: int
    outer_college_events: int
    total_registrations: int
    registrations_by_department: dict
