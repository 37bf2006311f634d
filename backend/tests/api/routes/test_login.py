from fastapi.testclient import TestClient
from sqlmodel import Session

from onboarding.core.config import settings
from tests.utils.user import user_authentication_headers
from tests.utils.utils import random_email, random_lower_string


def test_get_access_token(client: TestClient) -> None:
    login_data = {
        "username": settings.FIRST_SUPERUSER,
        "password": settings.FIRST_SUPERUSER_PASSWORD,
    }
    r = client.post(f"{settings.API_V1_STR}/login/access-token", data=login_data)
    tokens = r.json()
    assert r.status_code == 200
    assert "access_token" in tokens
    assert tokens["token_type"] == "bearer"


def test_get_access_token_incorrect_password(client: TestClient) -> None:
    login_data = {"username": settings.FIRST_SUPERUSER, "password": "incorrect"}
    r = client.post(f"{settings.API_V1_STR}/login/access-token", data=login_data)
    assert r.status_code == 400


def test_use_access_token(
    client: TestClient, superuser_token_headers: dict[str, str]
) -> None:
    r = client.post(
        f"{settings.API_V1_STR}/login/test-token", headers=superuser_token_headers
    )
    assert r.status_code == 200
    assert r.json()["role"] == "admin"


def test_invalid_token(client: TestClient) -> None:
    r = client.get(
        f"{settings.API_V1_STR}/users/me",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert r.status_code == 403


def test_signup_creates_candidate(client: TestClient, db: Session) -> None:
    email = random_email()
    password = random_lower_string()
    r = client.post(
        f"{settings.API_V1_STR}/users/signup",
        json={"email": email, "password": password, "full_name": "New Hire"},
    )
    assert r.status_code == 200
    assert r.json()["role"] == "candidate"

    headers = user_authentication_headers(client=client, email=email, password=password)
    me = client.get(f"{settings.API_V1_STR}/users/me", headers=headers).json()
    assert me["email"] == email
    assert me["full_name"] == "New Hire"


def test_signup_duplicate_email(client: TestClient) -> None:
    r = client.post(
        f"{settings.API_V1_STR}/users/signup",
        json={"email": settings.FIRST_SUPERUSER, "password": "whatever123"},
    )
    assert r.status_code == 400
