from fastapi.testclient import TestClient
from sqlmodel import Session

from onboarding.core.config import settings
from tests.utils.application import PDF_BYTES, complete_form
from tests.utils.fakes import MemoryBlobStore
from tests.utils.user import new_candidate_headers


def _draft_id(client: TestClient, headers: dict[str, str]) -> str:
    r = client.post(
        f"{settings.API_V1_STR}/applications/",
        headers=headers,
        json={"form_data": complete_form()},
    )
    assert r.status_code == 200, r.text
    return r.json()["id"]


def _upload(
    client: TestClient,
    headers: dict[str, str],
    application_id: str,
    document_type: str = "pan_card",
    content: bytes = PDF_BYTES,
    media_type: str = "application/pdf",
):
    return client.post(
        f"{settings.API_V1_STR}/applications/{application_id}/documents",
        headers=headers,
        data={"document_type": document_type},
        files={"file": (f"{document_type}.pdf", content, media_type)},
    )


def test_upload_document(
    client: TestClient, db: Session, blob_store: MemoryBlobStore
) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)

    r = _upload(client, headers, application_id)
    assert r.status_code == 200, r.text
    content = r.json()
    assert content["document_type"] == "pan_card"
    assert content["verification_status"] == "pending"
    assert content["original_filename"] == "pan_card.pdf"
    assert "storage_locator" not in content
    assert PDF_BYTES in blob_store.blobs.values()

    application = client.get(
        f"{settings.API_V1_STR}/applications/{application_id}", headers=headers
    ).json()
    assert application["progress_percent"] == 68


def test_reupload_replaces(client: TestClient, db: Session) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    first = _upload(client, headers, application_id).json()
    second = _upload(client, headers, application_id, content=b"%PDF-1.7 v2").json()
    assert second["id"] == first["id"]
    assert (first["revision"], second["revision"]) == (1, 2)

    r = client.get(
        f"{settings.API_V1_STR}/applications/{application_id}/documents",
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["count"] == 1


def test_upload_rejects_unsupported_type(client: TestClient, db: Session) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    r = _upload(client, headers, application_id, media_type="image/gif")
    assert r.status_code == 422
    assert r.json()["detail"]["field"] == "media_type"


def test_upload_rejects_unknown_document_type(client: TestClient, db: Session) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    r = _upload(client, headers, application_id, document_type="gym_membership")
    assert r.status_code == 422


def test_admin_cannot_upload_for_candidate(
    client: TestClient, db: Session, superuser_token_headers: dict[str, str]
) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    r = _upload(client, superuser_token_headers, application_id)
    assert r.status_code == 403


def test_verify_and_download(
    client: TestClient, db: Session, superuser_token_headers: dict[str, str]
) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    document = _upload(client, headers, application_id).json()

    r = client.post(
        f"{settings.API_V1_STR}/documents/{document['id']}/verification",
        headers=headers,
        json={"verified": True, "revision": document["revision"]},
    )
    assert r.status_code == 403

    r = client.post(
        f"{settings.API_V1_STR}/documents/{document['id']}/verification",
        headers=superuser_token_headers,
        json={"verified": True, "revision": document["revision"]},
    )
    assert r.status_code == 200
    assert r.json()["verification_status"] == "verified"

    r = client.get(
        f"{settings.API_V1_STR}/documents/{document['id']}/content",
        headers=superuser_token_headers,
    )
    assert r.status_code == 200
    assert r.content == PDF_BYTES
    assert r.headers["content-type"] == "application/pdf"

    r = client.delete(f"{settings.API_V1_STR}/documents/{document['id']}", headers=headers)
    assert r.status_code == 409


def test_reject_document_then_delete(
    client: TestClient, db: Session, superuser_token_headers: dict[str, str]
) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    document = _upload(client, headers, application_id).json()

    r = client.post(
        f"{settings.API_V1_STR}/documents/{document['id']}/verification",
        headers=superuser_token_headers,
        json={"verified": False, "reason": "Expired card", "revision": document["revision"]},
    )
    assert r.status_code == 200
    assert r.json()["rejection_reason"] == "Expired card"

    r = client.delete(f"{settings.API_V1_STR}/documents/{document['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Document deleted successfully"}

    r = client.get(
        f"{settings.API_V1_STR}/applications/{application_id}/documents",
        headers=headers,
    )
    assert r.json()["count"] == 0


def test_oversized_upload_rejected(client: TestClient, db: Session) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    content = b"%PDF-1.4\n" + b"0" * settings.MAX_UPLOAD_BYTES
    r = _upload(client, headers, application_id, content=content)
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["field"] == "content"
    # reading stops one byte past the limit
    assert detail["size_bytes"] == settings.MAX_UPLOAD_BYTES + 1
    assert detail["max_bytes"] == settings.MAX_UPLOAD_BYTES


def test_verification_of_replaced_revision_conflicts(
    client: TestClient, db: Session, superuser_token_headers: dict[str, str]
) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    inspected = _upload(client, headers, application_id).json()
    _upload(client, headers, application_id, content=b"%PDF-1.7 swapped scan")

    r = client.post(
        f"{settings.API_V1_STR}/documents/{inspected['id']}/verification",
        headers=superuser_token_headers,
        json={"verified": True, "revision": inspected["revision"]},
    )
    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["expected_revision"] == 1
    assert detail["current_revision"] == 2

    r = client.get(
        f"{settings.API_V1_STR}/applications/{application_id}/documents",
        headers=superuser_token_headers,
    )
    [current] = r.json()["data"]
    assert current["verification_status"] == "pending"

    r = client.post(
        f"{settings.API_V1_STR}/documents/{inspected['id']}/verification",
        headers=superuser_token_headers,
        json={"verified": True, "revision": current["revision"]},
    )
    assert r.status_code == 200
    assert r.json()["verification_status"] == "verified"


def test_verification_requires_revision(
    client: TestClient, db: Session, superuser_token_headers: dict[str, str]
) -> None:
    headers = new_candidate_headers(client, db)
    application_id = _draft_id(client, headers)
    document = _upload(client, headers, application_id).json()
    r = client.post(
        f"{settings.API_V1_STR}/documents/{document['id']}/verification",
        headers=superuser_token_headers,
        json={"verified": True},
    )
    assert r.status_code == 422
