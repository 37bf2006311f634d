from fastapi.testclient import TestClient
from sqlmodel import Session

from onboarding.core.config import settings
from tests.utils.user import create_random_profile
from tests.utils.utils import random_email


def test_update_me(client: TestClient, normal_user_token_headers: dict[str, str]) -> None:
    r = client.patch(
        f"{settings.API_V1_STR}/users/me",
        headers=normal_user_token_headers,
        json={"full_name": "Updated Candidate"},
    )
    assert r.status_code == 200
    assert r.json()["full_name"] == "Updated Candidate"
    assert r.json()["email"] == settings.EMAIL_TEST_USER


def test_update_me_email_taken(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.patch(
        f"{settings.API_V1_STR}/users/me",
        headers=normal_user_token_headers,
        json={"email": settings.FIRST_SUPERUSER},
    )
    assert r.status_code == 409


def test_admin_promotes_profile(
    client: TestClient, db: Session, superuser_token_headers: dict[str, str]
) -> None:
    profile = create_random_profile(db)
    r = client.patch(
        f"{settings.API_V1_STR}/users/{profile.id}/role",
        headers=superuser_token_headers,
        json={"role": "admin"},
    )
    assert r.status_code == 200
    assert r.json()["role"] == "admin"


def test_candidate_cannot_change_roles(
    client: TestClient, db: Session, normal_user_token_headers: dict[str, str]
) -> None:
    me = client.get(
        f"{settings.API_V1_STR}/users/me", headers=normal_user_token_headers
    ).json()
    r = client.patch(
        f"{settings.API_V1_STR}/users/{me['id']}/role",
        headers=normal_user_token_headers,
        json={"role": "admin"},
    )
    assert r.status_code == 403


def test_role_change_unknown_profile(
    client: TestClient, superuser_token_headers: dict[str, str]
) -> None:
    r = client.patch(
        f"{settings.API_V1_STR}/users/00000000-0000-0000-0000-000000000000/role",
        headers=superuser_token_headers,
        json={"role": "admin"},
    )
    assert r.status_code == 404


def test_update_me_to_new_email(client: TestClient, db: Session) -> None:
    from tests.utils.user import new_candidate_headers

    headers = new_candidate_headers(client, db)
    email = random_email()
    r = client.patch(
        f"{settings.API_V1_STR}/users/me", headers=headers, json={"email": email}
    )
    assert r.status_code == 200
    assert r.json()["email"] == email
