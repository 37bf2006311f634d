import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import EmailStr
from sqlalchemy import JSON, DateTime, Index, UniqueConstraint, text
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    CANDIDATE = "candidate"
    ADMIN = "admin"


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class DocumentType(str, Enum):
    PAN_CARD = "pan_card"
    AADHAR_CARD = "aadhar_card"
    PASSPORT = "passport"
    TENTH_CERTIFICATE = "tenth_certificate"
    TWELFTH_CERTIFICATE = "twelfth_certificate"
    BACHELORS_DEGREE = "bachelors_degree"
    MASTERS_DEGREE = "masters_degree"
    POLICE_CLEARANCE = "police_clearance"
    PHOTO = "photo"
    SIGNATURE = "signature"
    OTHER = "other"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class ActivityEventType(str, Enum):
    SUBMITTED = "submitted"
    STATUS_CHANGED = "status_changed"
    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_VERIFIED = "document_verified"
    DOCUMENT_REMOVED = "document_removed"
    COMMENT_ADDED = "comment_added"


class NotificationSeverity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# Shared properties
class ProfileBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    is_active: bool = True
    full_name: str | None = Field(default=None, max_length=255)


# Properties to receive on creation; role is only set by administrators
class ProfileCreate(ProfileBase):
    password: str = Field(min_length=8, max_length=128)
    role: Role = Role.CANDIDATE


class ProfileRegister(SQLModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)


# Role is deliberately absent: owners cannot change their own role
class ProfileUpdateMe(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=255)


class ProfileRoleUpdate(SQLModel):
    role: Role


# Database model, database table inferred from class name
class Profile(ProfileBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    role: str = Field(default=Role.CANDIDATE.value, max_length=16, index=True)
    hashed_password: str
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    applications: list["Application"] = Relationship(
        back_populates="owner",
        cascade_delete=True,
        sa_relationship_kwargs={"foreign_keys": "Application.owner_id"},
    )


# Properties to return via API, id is always required
class ProfilePublic(ProfileBase):
    id: uuid.UUID
    role: Role
    created_at: datetime | None = None


class ApplicationCreate(SQLModel):
    form_data: dict[str, Any] = Field(default_factory=dict)


class ApplicationUpdate(SQLModel):
    form_data: dict[str, Any]


class Application(SQLModel, table=True):
    __table_args__ = (
        # at most one draft per owner
        Index(
            "uq_application_owner_draft",
            "owner_id",
            unique=True,
            sqlite_where=text("status = 'draft'"),
            postgresql_where=text("status = 'draft'"),
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    status: str = Field(default=ApplicationStatus.DRAFT.value, max_length=32, index=True)
    form_data: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    progress_percent: int = Field(default=0, ge=0, le=100)
    reviewed_by_id: uuid.UUID | None = Field(
        default=None, foreign_key="profile.id", ondelete="SET NULL"
    )
    reviewed_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    rejection_reason: str | None = Field(default=None, max_length=1000)
    admin_notes: str | None = Field(default=None, max_length=2000)
    submitted_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    owner_id: uuid.UUID = Field(
        foreign_key="profile.id", nullable=False, ondelete="CASCADE", index=True
    )

    owner: Profile | None = Relationship(
        back_populates="applications",
        sa_relationship_kwargs={"foreign_keys": "Application.owner_id"},
    )
    documents: list["Document"] = Relationship(
        back_populates="application", cascade_delete=True
    )


class ApplicationPublic(SQLModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    status: ApplicationStatus
    form_data: dict[str, Any]
    progress_percent: int
    reviewed_by_id: uuid.UUID | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    admin_notes: str | None = None
    submitted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationsPublic(SQLModel):
    data: list[ApplicationPublic]
    count: int


class ApprovalRequest(SQLModel):
    notes: str | None = Field(default=None, max_length=2000)


class RejectionRequest(SQLModel):
    reason: str = Field(max_length=1000)
    notes: str | None = Field(default=None, max_length=2000)


class ApplicationStatisticsPublic(SQLModel):
    total_applications: int
    pending_review: int
    approved: int
    rejected: int
    documents_pending: int
    completed: int


class Document(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint(
            "application_id", "document_type", name="uq_document_application_type"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    document_type: str = Field(max_length=64, index=True)
    storage_locator: str = Field(max_length=1024)
    original_filename: str | None = Field(default=None, max_length=255)
    file_size_bytes: int
    media_type: str = Field(max_length=100)
    # bumped each time new bytes replace the row
    revision: int = Field(default=1)
    verification_status: str = Field(
        default=VerificationStatus.PENDING.value, max_length=16
    )
    verified_by_id: uuid.UUID | None = Field(
        default=None, foreign_key="profile.id", ondelete="SET NULL"
    )
    verified_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    rejection_reason: str | None = Field(default=None, max_length=1000)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    application_id: uuid.UUID = Field(
        foreign_key="application.id", nullable=False, ondelete="CASCADE", index=True
    )

    application: Application | None = Relationship(back_populates="documents")


class DocumentPublic(SQLModel):
    id: uuid.UUID
    application_id: uuid.UUID
    document_type: DocumentType
    original_filename: str | None = None
    file_size_bytes: int
    media_type: str
    revision: int
    verification_status: VerificationStatus
    verified_by_id: uuid.UUID | None = None
    verified_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentsPublic(SQLModel):
    data: list[DocumentPublic]
    count: int


class DocumentVerificationRequest(SQLModel):
    verified: bool
    # the revision the reviewer inspected
    revision: int = Field(ge=1)
    reason: str | None = Field(default=None, max_length=1000)


# Append-only: there is no update schema and no delete route
class ActivityLogEntry(SQLModel, table=True):
    __tablename__ = "activity_log_entry"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_type: str = Field(max_length=64)
    description: str = Field(max_length=1000)
    event_metadata: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )
    actor_id: uuid.UUID | None = Field(
        default=None, foreign_key="profile.id", ondelete="SET NULL"
    )
    application_id: uuid.UUID = Field(
        foreign_key="application.id", nullable=False, ondelete="CASCADE", index=True
    )


class ActivityLogEntryPublic(SQLModel):
    id: uuid.UUID
    application_id: uuid.UUID
    event_type: ActivityEventType
    description: str
    actor_id: uuid.UUID | None = None
    actor_name: str | None = None
    actor_role: Role | None = None
    event_metadata: dict[str, Any]
    created_at: datetime | None = None


class ApplicationTimelinePublic(SQLModel):
    application_id: uuid.UUID
    events: list[ActivityLogEntryPublic]


class Notification(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=255)
    message: str = Field(max_length=2000)
    severity: str = Field(default=NotificationSeverity.INFO.value, max_length=16)
    is_read: bool = False
    link: str | None = Field(default=None, max_length=512)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )
    recipient_id: uuid.UUID = Field(
        foreign_key="profile.id", nullable=False, ondelete="CASCADE", index=True
    )


class NotificationPublic(SQLModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    title: str
    message: str
    severity: NotificationSeverity
    is_read: bool
    link: str | None = None
    created_at: datetime | None = None


class NotificationsPublic(SQLModel):
    data: list[NotificationPublic]
    count: int
    unread_count: int


class NotificationReadPublic(SQLModel):
    id: uuid.UUID
    updated: bool


# Generic message
class Message(SQLModel):
    message: str


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None
