"""
Test configuration and fixtures for the W3Pets API
"""
import os
import tempfile

# Settings and the engine are built at import time
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="w3pets-logs-")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="w3pets-uploads-")
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["JWT_VERIFICATION_SECRET"] = "test-verification-secret"
os.environ["JWT_RESET_SECRET"] = "test-reset-secret"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ.pop("SENTRY_DSN", None)

import re
from typing import Generator, List, Optional

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from w3pets.api.main import app
from w3pets.auth.jwt_manager import create_access_token
from w3pets.auth.password import hash_password
from w3pets.cache.redis_cache import RedisCache, get_cache
from w3pets.database.connection import SessionLocal, engine, get_db
from w3pets.database.models import Account, AccountRole, Base
from w3pets.services.email_service import get_email_sender
from w3pets.services.file_storage import FileStorage, get_file_storage
from w3pets.utils.config import Settings


TEST_PASSWORD = "Secret123!"


# =============================================================================
# Test Database Setup
# =============================================================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test (in-memory SQLite)"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


# =============================================================================
# Collaborator Doubles
# =============================================================================

class RecordingEmailSender:
    """Email sender that keeps messages instead of sending them"""

    def __init__(self):
        self.messages: List[dict] = []

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        self.messages.append({"to": to, "subject": subject, "html": html, "text": text})

    def last_link(self) -> str:
        match = re.search(r"https?://\S+", self.messages[-1]["text"])
        return match.group(0)

    def last_token(self) -> str:
        return self.last_link().rsplit("/", 1)[-1]


@pytest.fixture
def cache() -> RedisCache:
    """Pending-token store backed by fakeredis"""
    return RedisCache(client=fakeredis.FakeRedis(decode_responses=True))


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def file_storage(upload_dir) -> FileStorage:
    return FileStorage(Settings(upload_dir=str(upload_dir), media_base_url="http://testserver/media"))


# =============================================================================
# FastAPI Test Client
# =============================================================================

@pytest.fixture(scope="function")
def client(db_session, cache, email_sender, file_storage) -> TestClient:
    """Create FastAPI test client with overridden dependencies"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_file_storage] = lambda: file_storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Test Data Fixtures
# =============================================================================

def _make_account(db_session, email: str, seller: bool = False, **fields) -> Account:
    account = Account(
        email=email,
        username=fields.pop("username", email.split("@")[0]),
        password_hash=hash_password(TEST_PASSWORD),
        full_name="Test User",
        role=AccountRole.SELLER if seller else AccountRole.CUSTOMER,
        is_seller=seller,
        is_verified=True,
        **fields,
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def account_factory(db_session):
    """Create verified accounts with the shared test password"""
    def factory(email: str, seller: bool = False, **fields) -> Account:
        return _make_account(db_session, email, seller=seller, **fields)
    return factory


@pytest.fixture
def customer(db_session) -> Account:
    """Verified customer account"""
    return _make_account(db_session, "customer@example.com")


@pytest.fixture
def seller(db_session) -> Account:
    """Onboarded seller account"""
    return _make_account(
        db_session,
        "seller@example.com",
        seller=True,
        business_name="Happy Paws",
        phone_number="+1 555-0100",
        address="1 Main St",
        city="Austin",
        state="TX",
    )


@pytest.fixture
def customer_headers(customer) -> dict:
    return {"Authorization": f"Bearer {create_access_token(customer)}"}


@pytest.fixture
def seller_headers(seller) -> dict:
    return {"Authorization": f"Bearer {create_access_token(seller)}"}
