import uuid
from pathlib import Path
from typing import Any

from fastapi import APIRouter, File, Form, Response, UploadFile

from onboarding.api.deps import (
    BlobStoreDep,
    CurrentProfile,
    DeliveryChannelDep,
    SessionDep,
)
from onboarding.core.config import settings
from onboarding.models import (
    DocumentPublic,
    DocumentsPublic,
    DocumentVerificationRequest,
    Message,
)
from onboarding.services import documents

router = APIRouter(tags=["documents"])


@router.post(
    "/applications/{application_id}/documents", response_model=DocumentPublic
)
async def upload_application_document(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    blob_store: BlobStoreDep,
    application_id: uuid.UUID,
    file: UploadFile = File(...),
    document_type: str = Form(...),
) -> Any:
    """
    Upload or replace the document of the given type for an application.
    """
    # one byte past the limit is enough for the size check to reject it
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    return documents.upload(
        session,
        application_id=application_id,
        actor_id=current_profile.id,
        document_type=document_type,
        content=content,
        media_type=file.content_type or "",
        filename=Path(file.filename or "uploaded-document").name,
        blob_store=blob_store,
    )


@router.get(
    "/applications/{application_id}/documents", response_model=DocumentsPublic
)
def read_application_documents(
    session: SessionDep, current_profile: CurrentProfile, application_id: uuid.UUID
) -> Any:
    data = documents.list_for(
        session, application_id=application_id, actor_id=current_profile.id
    )
    return DocumentsPublic(data=data, count=len(data))


@router.delete("/documents/{document_id}", response_model=Message)
def delete_document(
    session: SessionDep,
    current_profile: CurrentProfile,
    blob_store: BlobStoreDep,
    document_id: uuid.UUID,
) -> Any:
    documents.remove(
        session,
        document_id=document_id,
        actor_id=current_profile.id,
        blob_store=blob_store,
    )
    return Message(message="Document deleted successfully")


@router.post("/documents/{document_id}/verification", response_model=DocumentPublic)
def verify_document(
    *,
    session: SessionDep,
    current_profile: CurrentProfile,
    channel: DeliveryChannelDep,
    document_id: uuid.UUID,
    verification_in: DocumentVerificationRequest,
) -> Any:
    return documents.verify(
        session,
        document_id=document_id,
        actor_id=current_profile.id,
        verified=verification_in.verified,
        expected_revision=verification_in.revision,
        reason=verification_in.reason,
        channel=channel,
    )


@router.get("/documents/{document_id}/content")
def read_document_content(
    session: SessionDep,
    current_profile: CurrentProfile,
    blob_store: BlobStoreDep,
    document_id: uuid.UUID,
) -> Response:
    document, content = documents.read_content(
        session,
        document_id=document_id,
        actor_id=current_profile.id,
        blob_store=blob_store,
    )
    filename = document.original_filename or document.document_type
    return Response(
        content=content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
