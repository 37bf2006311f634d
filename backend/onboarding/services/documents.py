"""Supporting documents and their verification sub-workflow.

There is at most one row per (application, document type). Uploading a type
that is already present replaces the row in place and resets verification to
pending, so new bytes are never left marked as verified.

Bytes go to the blob store before the row is written. If the database side
fails afterwards the new blob is deleted again; if that compensation fails
too, the orphaned locator is logged.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from onboarding.core.config import settings
from onboarding.core.db import atomic
from onboarding.core.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from onboarding.models import (
    ActivityEventType,
    Application,
    ApplicationStatus,
    Document,
    DocumentType,
    NotificationSeverity,
    VerificationStatus,
    get_datetime_utc,
)
from onboarding.services import activity, authorization, notifications, progress
from onboarding.services.delivery import DeliveryChannel
from onboarding.services.storage import BlobStore, get_blob_store

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
}

CLOSED_STATUSES = {ApplicationStatus.REJECTED.value}


def parse_document_type(value: str | DocumentType) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown document type: {value}",
            field="document_type",
            allowed=[document_type.value for document_type in DocumentType],
        ) from None


def normalize_media_type(media_type: str | None) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


def validate_upload(*, content: bytes, media_type: str) -> None:
    if media_type not in ALLOWED_MEDIA_TYPES:
        raise ValidationError(
            "Unsupported file type. Allowed: PDF, JPEG, PNG",
            field="media_type",
            media_type=media_type,
        )
    if not content:
        raise ValidationError("Uploaded file is empty", field="content")
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(
            "File is too large",
            field="content",
            size_bytes=len(content),
            max_bytes=settings.MAX_UPLOAD_BYTES,
        )


def build_storage_locator(
    *,
    owner_id: uuid.UUID,
    application_id: uuid.UUID,
    document_type: DocumentType,
    timestamp: datetime,
    nonce: str | None = None,
) -> str:
    millis = int(timestamp.timestamp() * 1000)
    nonce = nonce or uuid.uuid4().hex[:12]
    return f"{owner_id}/{application_id}/{document_type.value}/{millis}_{nonce}"


def _load_application(session: Session, application_id: uuid.UUID) -> Application:
    application = session.get(Application, application_id)
    if not application:
        raise NotFoundError("Application not found", application_id=str(application_id))
    return application


def _load_document(session: Session, document_id: uuid.UUID) -> Document:
    document = session.get(Document, document_id)
    if not document:
        raise NotFoundError("Document not found", document_id=str(document_id))
    return document


def _compensate(blob_store: BlobStore, locator: str) -> None:
    logger.warning("Database write failed, deleting uploaded blob %s", locator)
    try:
        blob_store.delete(locator)
    except Exception:
        logger.exception("Compensating delete failed; blob %s is orphaned", locator)


def _discard(blob_store: BlobStore, locator: str) -> None:
    try:
        blob_store.delete(locator)
    except Exception:
        logger.exception("Could not delete superseded blob %s", locator)


def upload(
    session: Session,
    *,
    application_id: uuid.UUID,
    actor_id: uuid.UUID,
    document_type: str | DocumentType,
    content: bytes,
    media_type: str,
    filename: str | None = None,
    blob_store: BlobStore | None = None,
) -> Document:
    application = _load_application(session, application_id)
    authorization.require_owner(actor_id, application.owner_id, action="upload documents")
    if application.status in CLOSED_STATUSES:
        raise ConflictError(
            "Documents cannot be added to a closed application",
            current_status=application.status,
        )
    doc_type = parse_document_type(document_type)
    media_type = normalize_media_type(media_type)
    validate_upload(content=content, media_type=media_type)

    blob_store = blob_store or get_blob_store()
    locator = build_storage_locator(
        owner_id=application.owner_id,
        application_id=application.id,
        document_type=doc_type,
        timestamp=get_datetime_utc(),
    )
    try:
        blob_store.put(locator, content, media_type)
    except StorageError:
        raise
    except Exception as exc:
        raise StorageError("Could not store document", locator=locator) from exc

    superseded: str | None = None
    try:
        with atomic(session):
            document = session.exec(
                select(Document).where(
                    Document.application_id == application.id,
                    Document.document_type == doc_type.value,
                )
            ).first()
            if document:
                superseded = document.storage_locator
                document.storage_locator = locator
                document.original_filename = filename
                document.file_size_bytes = len(content)
                document.media_type = media_type
                document.revision += 1
                document.verification_status = VerificationStatus.PENDING.value
                document.verified_by_id = None
                document.verified_at = None
                document.rejection_reason = None
                document.updated_at = get_datetime_utc()
            else:
                document = Document(
                    application_id=application.id,
                    document_type=doc_type.value,
                    storage_locator=locator,
                    original_filename=filename,
                    file_size_bytes=len(content),
                    media_type=media_type,
                )
            session.add(document)
            session.flush()
            progress.recompute(session, application)
            activity.append(
                session,
                application_id=application.id,
                event_type=ActivityEventType.DOCUMENT_UPLOADED,
                description=f"Document uploaded: {doc_type.value}",
                actor_id=actor_id,
                metadata={
                    "document_id": str(document.id),
                    "document_type": doc_type.value,
                    "file_size_bytes": len(content),
                    "media_type": media_type,
                    "replaced": superseded is not None,
                },
            )
    except IntegrityError as exc:
        _compensate(blob_store, locator)
        raise ConflictError(
            "This document type was uploaded concurrently",
            document_type=doc_type.value,
        ) from exc
    except Exception:
        _compensate(blob_store, locator)
        raise

    if superseded and superseded != locator:
        _discard(blob_store, superseded)
    logger.info("Stored %s for application %s", doc_type.value, application.id)
    session.refresh(document)
    return document


def remove(
    session: Session,
    *,
    document_id: uuid.UUID,
    actor_id: uuid.UUID,
    blob_store: BlobStore | None = None,
) -> None:
    document = _load_document(session, document_id)
    application = _load_application(session, document.application_id)
    authorization.require_owner(actor_id, application.owner_id, action="remove documents")
    if document.verification_status == VerificationStatus.VERIFIED.value:
        raise ConflictError(
            "Verified documents cannot be removed",
            document_id=str(document_id),
            verification_status=document.verification_status,
        )

    locator = document.storage_locator
    document_type = document.document_type
    with atomic(session):
        session.delete(document)
        session.flush()
        progress.recompute(session, application)
        activity.append(
            session,
            application_id=application.id,
            event_type=ActivityEventType.DOCUMENT_REMOVED,
            description=f"Document removed: {document_type}",
            actor_id=actor_id,
            metadata={"document_id": str(document_id), "document_type": document_type},
        )
    _discard(blob_store or get_blob_store(), locator)


def verify(
    session: Session,
    *,
    document_id: uuid.UUID,
    actor_id: uuid.UUID,
    verified: bool,
    expected_revision: int,
    reason: str | None = None,
    channel: DeliveryChannel | None = None,
) -> Document:
    """Record a decision on the revision of the document the reviewer inspected.

    A replacement uploaded after the reviewer loaded the document bumps its
    revision, so the decision no longer matches and ``ConflictError`` is
    raised instead of stamping the new bytes as verified.
    """
    authorization.require_admin(session, actor_id, action="verify documents")
    document = _load_document(session, document_id)
    application = _load_application(session, document.application_id)
    reason = (reason or "").strip() or None
    new_status = VerificationStatus.VERIFIED if verified else VerificationStatus.REJECTED

    with atomic(session):
        result = session.exec(  # type: ignore[call-overload]
            update(Document)
            .where(
                col(Document.id) == document.id,
                col(Document.revision) == expected_revision,
            )
            .values(
                verification_status=new_status.value,
                verified_by_id=actor_id,
                verified_at=get_datetime_utc(),
                rejection_reason=None if verified else reason,
                updated_at=get_datetime_utc(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.refresh(document)
            raise ConflictError(
                "Document was replaced while being reviewed",
                document_id=str(document_id),
                expected_revision=expected_revision,
                current_revision=document.revision,
            )
        session.refresh(document)
        activity.append(
            session,
            application_id=application.id,
            event_type=ActivityEventType.DOCUMENT_VERIFIED,
            description=(
                f"Document verified: {document.document_type}"
                if verified
                else f"Document rejected: {document.document_type}"
            ),
            actor_id=actor_id,
            metadata={
                "document_id": str(document.id),
                "document_type": document.document_type,
                "revision": expected_revision,
                "verified": verified,
                "rejection_reason": None if verified else reason,
            },
        )
        if verified:
            notification = notifications.notify(
                session,
                recipient_id=application.owner_id,
                title="Document Verified",
                message=f"Your {document.document_type} has been verified.",
                severity=NotificationSeverity.SUCCESS,
                link="/candidate/documents",
            )
        else:
            notification = notifications.notify(
                session,
                recipient_id=application.owner_id,
                title="Document Needs Attention",
                message=(
                    f"Your {document.document_type} requires resubmission. "
                    f"Reason: {reason or 'N/A'}"
                ),
                severity=NotificationSeverity.WARNING,
                link="/candidate/documents",
            )
    notifications.deliver([notification], channel)
    logger.info(
        "Document %s marked %s by %s", document_id, new_status.value, actor_id
    )
    session.refresh(document)
    return document


def list_for(
    session: Session, *, application_id: uuid.UUID, actor_id: uuid.UUID
) -> list[Document]:
    application = _load_application(session, application_id)
    authorization.require_read(session, actor_id, application.owner_id)
    statement = (
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(col(Document.created_at).desc())
    )
    return list(session.exec(statement).all())


def read_content(
    session: Session,
    *,
    document_id: uuid.UUID,
    actor_id: uuid.UUID,
    blob_store: BlobStore | None = None,
) -> tuple[Document, bytes]:
    document = _load_document(session, document_id)
    application = _load_application(session, document.application_id)
    authorization.require_read(session, actor_id, application.owner_id)
    content = (blob_store or get_blob_store()).get(document.storage_locator)
    return document, content
