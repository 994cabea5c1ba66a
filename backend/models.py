from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Enum as SQLEnum, ForeignKey, Text, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import enum


class AdminRole(enum.Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class CellsAndAssociation(enum.Enum):
    IT = "IT"
    IIC = "IIC"
    EMDC = "EMDC"
    OT = "OT"


class EventType(enum.Enum):
    HACKATHON = "Hackathon"
    WORKSHOP = "Workshop"
    INTER_COLLEGE = "Inter College"
    INTRA_COLLEGE = "Intra College"
    FUN_EVENT = "Fun Event"


class RegistrationMode(enum.Enum):
    PLATFORM = "Platform"
    GOOGLE_FORMS = "Google Forms"


class RegistrationType(enum.Enum):
    OUTER = "outer"
    PLATFORM = "platform"


class EventMode(enum.Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


class EventStatus(enum.Enum):
    ONGOING = "Ongoing"
    UPCOMING = "Upcoming"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class RegistrationStatus(enum.Enum):
    REGISTERED = "Registered"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class ParticipationType(enum.Enum):
    SOLO = "solo"
    TEAM = "team"


class OuterRegistrationStatus(enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class NotificationType(enum.Enum):
    NEW_EVENT = "New Event"
    EVENT_REMINDER = "Event Reminder"
    REGISTRATION_CLOSING = "Registration Closing"
    GENERAL = "General"


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(AdminRole), default=AdminRole.ADMIN, nullable=False)
    cells_and_association = Column(SQLEnum(CellsAndAssociation), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    events = relationship("Event", back_populates="creator")


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_cells_status", "cells_and_association", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    organizing_body = Column(String(255), nullable=False)
    event_type = Column(JSON, nullable=True)  # ["Hackathon", "Workshop", ...]
    registration_mode = Column(SQLEnum(RegistrationMode), default=RegistrationMode.PLATFORM, nullable=False)
    registration_type = Column(SQLEnum(RegistrationType), default=RegistrationType.PLATFORM, nullable=False)
    mode = Column(SQLEnum(EventMode), nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    venue = Column(String(255), nullable=True)
    coordinator_name = Column(String(255), nullable=False)
    coordinator_contact = Column(String(50), nullable=False)
    cells_and_association = Column(SQLEnum(CellsAndAssociation), nullable=False)
    poster_image = Column(String(500), nullable=True)
    brochure = Column(String(500), nullable=True)
    description = Column(Text, nullable=False)
    rules = Column(Text, nullable=False)
    event_link = Column(String(500), nullable=True)
    whatsapp_group_link = Column(String(500), nullable=True)
    registration_link = Column(String(500), nullable=False)
    max_participants = Column(Integer, nullable=False)
    current_registrations = Column(Integer, default=0, nullable=False)
    status = Column(SQLEnum(EventStatus), default=EventStatus.UPCOMING, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    registration_end_date = Column(Date, nullable=True)
    created_by = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    creator = relationship("Admin", back_populates="events")
    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")
    outer_registrations = relationship("OuterCollegeRegistration", back_populates="event", cascade="all, delete-orphan")

    @property
    def is_outer_college_event(self) -> bool:
        return self.registration_type == RegistrationType.OUTER


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "student_email", name="uq_registrations_event_email"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    student_name = Column(String(255), nullable=False)
    student_email = Column(String(255), nullable=False)
    student_phone = Column(String(20), nullable=False)
    student_department = Column(String(150), nullable=False)
    student_year = Column(String(20), nullable=False)
    registration_date = Column(DateTime(timezone=True), server_default=func.now())
    status = Column(SQLEnum(RegistrationStatus), default=RegistrationStatus.REGISTERED, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    event = relationship("Event", back_populates="registrations")


class OuterCollegeRegistration(Base):
    __tablename__ = "outer_college_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "roll_number", name="uq_outer_registrations_event_roll"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    participation_type = Column(SQLEnum(ParticipationType), default=ParticipationType.SOLO, nullable=False)
    participant_name = Column(String(255), nullable=False)
    roll_number = Column(String(50), nullable=False)
    department = Column(String(150), nullable=True)
    year_of_study = Column(String(2), default="", nullable=False)
    contact_number = Column(String(10), nullable=False)
    email = Column(String(255), nullable=True)
    mode_of_participation = Column(SQLEnum(EventMode), default=EventMode.OFFLINE, nullable=False)
    team_members = Column(JSON, nullable=True)  # [{"name": ..., "roll_number": ...}, ...]
    status = Column(SQLEnum(OuterRegistrationStatus), default=OuterRegistrationStatus.PENDING, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    event = relationship("Event", back_populates="outer_registrations")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)
    target_audience = Column(JSON, nullable=False)  # ["All Students", "IT Department", ...]
    related_event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    scheduled_for = Column(DateTime(timezone=True), nullable=False)
    is_sent = Column(Boolean, default=False, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    related_event = relationship("Event")


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(120), nullable=False)
    year = Column(String(20), nullable=True)
    club = Column(String(120), nullable=True)
    image_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)
    order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class AdminLog(Base):
    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, nullable=True)
    admin_email = Column(String(255), nullable=False)
    admin_name = Column(String(255), nullable=False)
    action = Column(String(255), nullable=False)
    method = Column(String(10), nullable=True)
    path = Column(String(255), nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
