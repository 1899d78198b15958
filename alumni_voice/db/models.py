"""Database models."""
import uuid
from datetime import datetime
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """Alumni profile."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    company = Column(String, nullable=True)
    designation = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    skills = Column(JSON, nullable=True)  # List of skill strings
    interests = Column(JSON, nullable=True)
    experience_years = Column(Integer, nullable=True)
    engagement_score = Column(Integer, default=0, nullable=False)
    is_mentor = Column(Boolean, default=False, nullable=False)


class AccessCodeRecord(Base):
    """Short numeric code a caller speaks or keys in to authenticate."""

    __tablename__ = "voice_access_codes"

    id = Column(Integer, primary_key=True, index=True)
    access_code = Column(String, index=True, nullable=False)
    user_id = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Opportunity(Base):
    """Job or internship posting."""

    __tablename__ = "opportunities"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    type = Column(String, default="job", nullable=False)  # job, internship
    location = Column(String, nullable=True)
    salary_range = Column(String, nullable=True)
    employment_type = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Event(Base):
    """Event, meetup, webinar or scheduled mentorship session."""

    __tablename__ = "events"

    id = Column(String, primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=False)
    location = Column(String, nullable=True)
    is_virtual = Column(Boolean, default=False, nullable=False)
    event_type = Column(String, default="meetup", nullable=False)
    created_by = Column(String, nullable=True)

    rsvps = relationship("EventRsvp", back_populates="event", cascade="all, delete-orphan")


class EventRsvp(Base):
    """Event attendance."""

    __tablename__ = "event_rsvps"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_event_rsvps_user_event"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False)
    event_id = Column(String, ForeignKey("events.id"), nullable=False)
    status = Column(String, default="attending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    event = relationship("Event", back_populates="rsvps")


class Message(Base):
    """Direct message between two users."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(String, nullable=False)
    receiver_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Notification(Base):
    """In-app notification."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Post(Base):
    """Social feed post."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class CallSessionRecord(Base):
    """Persisted call session, one row per phone call or browser session."""

    __tablename__ = "call_sessions"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(String, nullable=True)
    status = Column(String, default="initiated", nullable=False)
    call_type = Column(String, default="inbound", nullable=False)  # inbound, outbound, reminder, browser
    intent = Column(String, nullable=True)
    context = Column(JSON, nullable=True)
    transcript = Column(Text, nullable=True)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    recording_url = Column(String, nullable=True)
    summary = Column(Text, nullable=True)
    version = Column(Integer, default=1, nullable=False)

    # Relationships
    action_logs = relationship(
        "CallActionLog",
        back_populates="call_session",
        order_by="CallActionLog.id",
    )


class CallActionLog(Base):
    """Append-only audit row for an action executed during a call."""

    __tablename__ = "call_action_logs"

    id = Column(Integer, primary_key=True, index=True)
    call_session_id = Column(String, ForeignKey("call_sessions.call_sid"), index=True, nullable=False)
    action = Column(String, nullable=False)
    endpoint = Column(String, nullable=True)
    request_summary = Column(Text, nullable=True)
    response_status = Column(Integer, nullable=True)
    response_summary = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    call_session = relationship("CallSessionRecord", back_populates="action_logs")
