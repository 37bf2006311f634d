import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine, select

from onboarding import crud
from onboarding.core.config import settings
from onboarding.models import Profile, ProfileCreate, Role

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in {"sqlite://", "sqlite:///:memory:"}:
        # one shared connection, otherwise every checkout sees an empty database
        options["poolclass"] = StaticPool
    sqlite_engine = create_engine(url, **options)

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session) -> Generator[Session, None, None]:
    """Commit on success, roll everything back on any error."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


# make sure all SQLModel models are imported (onboarding.models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly


def init_db(session: Session) -> None:
    # Tables should be created with Alembic migrations
    # But if you don't want to use migrations, create
    # the tables un-commenting the next lines
    # from sqlmodel import SQLModel

    # This works because the models are already imported and registered from onboarding.models
    # SQLModel.metadata.create_all(engine)

    profile = session.exec(
        select(Profile).where(Profile.email == settings.FIRST_SUPERUSER)
    ).first()
    if not profile:
        profile_in = ProfileCreate(
            email=settings.FIRST_SUPERUSER,
            password=settings.FIRST_SUPERUSER_PASSWORD,
            full_name="Onboarding Administrator",
            role=Role.ADMIN,
        )
        profile = crud.create_profile(session=session, profile_create=profile_in)
        logger.info("Created first administrator %s", profile.email)
