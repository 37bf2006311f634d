import os

# Point the app at a private in-memory database before settings are loaded
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENVIRONMENT", "local")

from collections.abc import Generator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, delete  # noqa: E402

from onboarding.core.config import settings  # noqa: E402
from onboarding.core.db import engine, init_db  # noqa: E402
from onboarding.main import app  # noqa: E402
from onboarding.models import (  # noqa: E402
    ActivityLogEntry,
    Application,
    Document,
    Notification,
    Profile,
)
from onboarding.services.delivery import get_delivery_channel  # noqa: E402
from onboarding.services.storage import get_blob_store  # noqa: E402
from tests.utils.fakes import MemoryBlobStore, RecordingDeliveryChannel  # noqa: E402
from tests.utils.user import authentication_token_from_email  # noqa: E402
from tests.utils.utils import get_superuser_token_headers  # noqa: E402

BACKEND_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(scope="session")
def db() -> Generator[Session, None, None]:
    # Ensure schema is up to date before any test touches the DB.
    alembic_cfg = Config(str(BACKEND_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option(
        "script_location", str(BACKEND_ROOT / "onboarding" / "alembic")
    )
    with engine.begin() as connection:
        alembic_cfg.attributes["connection"] = connection
        command.upgrade(alembic_cfg, "head")

    with Session(engine) as session:
        init_db(session)
        yield session
        for model in (Notification, ActivityLogEntry, Document, Application, Profile):
            session.execute(delete(model))
        session.commit()


@pytest.fixture(scope="session")
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture(scope="session")
def delivery_channel() -> RecordingDeliveryChannel:
    return RecordingDeliveryChannel()


@pytest.fixture(scope="module")
def client(
    db: Session,
    blob_store: MemoryBlobStore,
    delivery_channel: RecordingDeliveryChannel,
) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_delivery_channel] = lambda: delivery_channel
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="module")
def superuser_token_headers(client: TestClient) -> dict[str, str]:
    return get_superuser_token_headers(client)


@pytest.fixture(scope="module")
def normal_user_token_headers(client: TestClient, db: Session) -> dict[str, str]:
    return authentication_token_from_email(
        client=client, email=settings.EMAIL_TEST_USER, db=db
    )
