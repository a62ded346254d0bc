from collections.abc import Iterator

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.config import Settings, settings
from storefront.database import get_db, init_db
from storefront.main import app
from storefront.services.registry import Services, build_services


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, DATABASE_URL="sqlite://", BULK_UPDATE_BATCH_SIZE=100)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def services(test_settings) -> Services:
    return build_services(test_settings)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = jwt.encode({"sub": "admin-1"}, settings.SECRET_KEY, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(session_factory, services) -> Iterator[TestClient]:
    """API client on the in-memory database. Lifespan is not run."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.state.services = services
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
