"""Application completion score.

60 points come from the required form fields, 40 from the required
documents::

    percent = floor(F * 60 / N) + min(40, floor(D * 40 / R))

where F counts filled required fields out of N and D counts uploaded
documents of a required type out of R. Optional document types (passport,
photo, ...) never count toward D.
"""

import uuid
from typing import Any

from sqlmodel import Session, col, func, select

from onboarding.models import Application, Document, DocumentType, get_datetime_utc

REQUIRED_FORM_FIELDS: tuple[str, ...] = (
    "post_applied_for",
    "full_name",
    "father_or_husband_name",
    "permanent_address",
    "communication_address",
    "date_of_birth",
    "sex",
    "marital_status",
    "mobile_no",
    "email",
    "bank_name",
    "declaration",
)

REQUIRED_DOCUMENT_TYPES: tuple[DocumentType, ...] = (
    DocumentType.PAN_CARD,
    DocumentType.AADHAR_CARD,
    DocumentType.TENTH_CERTIFICATE,
    DocumentType.TWELFTH_CERTIFICATE,
    DocumentType.BACHELORS_DEGREE,
)

FORM_WEIGHT = 60
DOCUMENT_WEIGHT = 40


def is_filled(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list | dict | tuple):
        return len(value) > 0
    return True


def missing_required_fields(form_data: dict[str, Any] | None) -> list[str]:
    form_data = form_data or {}
    return [name for name in REQUIRED_FORM_FIELDS if not is_filled(form_data.get(name))]


def calculate_progress(*, filled_fields: int, uploaded_documents: int) -> int:
    total_fields = len(REQUIRED_FORM_FIELDS)
    total_documents = len(REQUIRED_DOCUMENT_TYPES)
    form_part = (filled_fields * FORM_WEIGHT) // total_fields
    document_part = min(
        DOCUMENT_WEIGHT, (uploaded_documents * DOCUMENT_WEIGHT) // total_documents
    )
    return max(0, min(100, form_part + document_part))


def count_required_documents(session: Session, application_id: uuid.UUID) -> int:
    statement = (
        select(func.count(func.distinct(Document.document_type)))
        .select_from(Document)
        .where(
            Document.application_id == application_id,
            col(Document.document_type).in_(
                [document_type.value for document_type in REQUIRED_DOCUMENT_TYPES]
            ),
        )
    )
    return session.exec(statement).one()


def compute(session: Session, application_id: uuid.UUID) -> int:
    """Derive the percentage from persisted state. Safe to call repeatedly."""
    application = session.get(Application, application_id)
    if application is None:
        return 0
    filled = len(REQUIRED_FORM_FIELDS) - len(missing_required_fields(application.form_data))
    return calculate_progress(
        filled_fields=filled,
        uploaded_documents=count_required_documents(session, application_id),
    )


def recompute(session: Session, application: Application) -> int:
    """Compute and store the percentage on ``application`` (caller commits)."""
    session.flush()
    percent = compute(session, application.id)
    if application.progress_percent != percent:
        application.progress_percent = percent
        application.updated_at = get_datetime_utc()
        session.add(application)
    return percent
