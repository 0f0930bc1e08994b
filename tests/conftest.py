"""
Pytest configuration and shared fixtures for the translation service tests.

Settings are read once at import time, so the environment is prepared
before anything from ``translation_service`` is imported.
"""
from collections.abc import Generator
import os
from pathlib import Path
import shutil
import tempfile

import pytest

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="translation-service-tests-"))

os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'test.db'}"
os.environ["ENVIRONMENT"] = "local"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["EXPORT_STORAGE"] = "disk"
os.environ["EXPORT_DIR"] = str(_TEST_ROOT / "exports")
os.environ["EXPORT_PAGE_SIZE"] = "7"
os.environ["FIRST_SUPERUSER_EMAIL"] = "admin@example.com"
os.environ["FIRST_SUPERUSER_PASSWORD"] = "admin-password"

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from translation_service.auth import User  # noqa: E402
from translation_service.core.config import settings  # noqa: E402
from translation_service.core.db import engine  # noqa: E402
from translation_service.core.security import (  # noqa: E402
    create_access_token,
    get_password_hash,
)
from translation_service.main import app  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"


# ============================================================================
# Fixtures: Database
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def _database() -> Generator[None, None, None]:
    """Create the schema once for the whole run."""
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)
    engine.dispose()
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_tables() -> Generator[None, None, None]:
    """Empty every table after each test."""
    yield
    with Session(engine) as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()


@pytest.fixture
def session() -> Generator[Session, None, None]:
    with Session(engine) as s:
        yield s


# ============================================================================
# Fixtures: Users & Auth
# ============================================================================

@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash the test password once per run."""
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def superuser(session: Session, password_hash: str) -> User:
    user = User(
        email=settings.FIRST_SUPERUSER_EMAIL,
        full_name="Admin",
        is_superuser=True,
        hashed_password=password_hash,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def auth_headers(superuser: User) -> dict[str, str]:
    token, _, _ = create_access_token(str(superuser.id))
    return {"Authorization": f"Bearer {token}"}


# ============================================================================
# Fixtures: Application
# ============================================================================

@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client with the application lifespan running.

    Every client gets a fresh store, export cache and export service.
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def export_dir() -> Path:
    return settings.EXPORT_DIR


@pytest.fixture
def sample_translations() -> list[dict]:
    return [
        {"locale": "en", "key": "greeting", "value": "Hello", "tags": ["web"]},
        {"locale": "fr", "key": "greeting", "value": "Bonjour", "tags": ["web", "mobile"]},
        {"locale": "de", "key": "farewell", "value": "Tschüss", "tags": ["mobile"]},
        {"locale": "en", "key": "farewell", "value": "Goodbye", "tags": []},
        {"locale": "en", "key": "checkout.pay", "value": "Pay now", "tags": ["webview"]},
    ]


@pytest.fixture
def user_password() -> str:
    return TEST_PASSWORD
