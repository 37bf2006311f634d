from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import Engine
from sqlmodel import Session, SQLModel

from onboarding.core.db import build_engine
from onboarding.models import Profile, Role
from tests.utils.application import create_profile
from tests.utils.fakes import MemoryBlobStore, RecordingDeliveryChannel


@pytest.fixture
def service_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    # a file database per test so separate sessions see each other's commits
    engine = build_engine(f"sqlite:///{tmp_path / 'onboarding.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(service_engine: Engine) -> Generator[Session, None, None]:
    with Session(service_engine) as session:
        yield session


@pytest.fixture
def candidate(session: Session) -> Profile:
    return create_profile(session)


@pytest.fixture
def other_candidate(session: Session) -> Profile:
    return create_profile(session)


@pytest.fixture
def admin(session: Session) -> Profile:
    return create_profile(session, role=Role.ADMIN)


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def channel() -> RecordingDeliveryChannel:
    return RecordingDeliveryChannel()
