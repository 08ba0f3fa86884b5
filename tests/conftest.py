# tests/conftest.py

import os
import tempfile

# Settings are read at import time, so the test environment has to be in
# place before anything from the service is imported.
os.environ.setdefault("ENV", "local")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOCAL_UPLOAD_DIR", tempfile.mkdtemp(prefix="hv-uploads-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from home_value_service.main import app
from home_value_service.api import deps
from home_value_service.db.session import get_db
from home_value_service.db.base_class import Base
from home_value_service.services.image_storage import (
    ImageAttachmentPipeline,
    LocalImageStorage,
)
import home_value_service.models  # noqa: F401


# --- Test Database Setup ---
# One in-memory SQLite database shared by every connection of the pool.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def image_storage(tmp_path):
    return LocalImageStorage(str(tmp_path / "uploads"), "/uploads")


@pytest.fixture(scope="function")
def pipeline(image_storage):
    return ImageAttachmentPipeline(image_storage, max_size_bytes=1024, max_files=3)


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def client(db, image_storage):
    """
    TestClient backed by the in-memory database and a temporary upload
    directory. Authentication is real: use tests.utils.auth for headers.
    """

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_image_storage] = lambda: image_storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
