"""Pytest configuration and fixtures."""

import os
import tempfile

# Point settings at throwaway locations before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="stockroom-test-")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters!")
os.environ.pop("OPENAI_API_KEY", None)

from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stockroom.core.rate_limit import limiter
from stockroom.core.security import create_access_token, get_password_hash
from stockroom.db.base import Base
from stockroom.db.session import enable_sqlite_foreign_keys, get_db
from stockroom.main import app
# Import all models to ensure they're registered with Base.metadata
from stockroom.models import *
from stockroom.models.invoice import Invoice, InvoiceStatus
from stockroom.models.product import Product
from stockroom.models.supplier import Supplier
from stockroom.models.user import User
from stockroom.services.invoice_extraction import get_invoice_extractor
from stockroom.services.invoice_storage import InvoiceFileStorage, get_invoice_storage

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Smallest valid PNG (1x1 transparent pixel)
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


class FakeExtractor:
    """Stands in for the vision model: returns a canned reply or raises."""

    def __init__(self, reply: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.reply = reply if reply is not None else {"line_items": []}
        self.error = error
        self.calls: List[tuple] = []

    def extract(self, content: bytes, mime_type: str) -> Dict[str, Any]:
        self.calls.append((content, mime_type))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path) -> InvoiceFileStorage:
    """Invoice storage rooted in a per-test directory."""
    return InvoiceFileStorage(tmp_path)


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture(scope="function")
def client(
    db_session: Session,
    storage: InvoiceFileStorage,
    fake_extractor: FakeExtractor,
) -> Generator[TestClient, None, None]:
    """Create a test client with database, storage and extractor overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_invoice_storage] = lambda: storage
    app.dependency_overrides[get_invoice_extractor] = lambda: fake_extractor
    # Disable rate limiting during tests to avoid flaky failures
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def test_user(db_session: Session) -> User:
    """Create a test user."""
    user = User(
        username="tester",
        password_hash=get_password_hash("testpass123"),
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_token(test_user: User) -> str:
    """Get an authentication token for the test user."""
    return create_access_token(data={"sub": str(test_user.id), "username": test_user.username})


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    """Get authentication headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def test_supplier(db_session: Session) -> Supplier:
    """Create a test supplier."""
    supplier = Supplier(name="Test Supplier")
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


@pytest.fixture
def test_product(db_session: Session, test_supplier: Supplier) -> Product:
    """Create a test product."""
    product = Product(
        name="Test Beer",
        brand="Brewco",
        barcode="1234567890123",
        supplier_id=test_supplier.id,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def second_product(db_session: Session, test_supplier: Supplier) -> Product:
    product = Product(name="Sparkling Water", brand="Aqua", barcode="4006381333931", supplier_id=test_supplier.id)
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def stored_invoice(db_session: Session, storage: InvoiceFileStorage, test_supplier: Supplier) -> Invoice:
    """An UPLOADED invoice whose file exists in test storage."""
    stored_path = storage.save(PNG_BYTES, "scan.png")
    invoice = Invoice(
        supplier_id=test_supplier.id,
        original_name="scan.png",
        stored_path=stored_path,
        mime_type="image/png",
        status=InvoiceStatus.UPLOADED,
    )
    db_session.add(invoice)
    db_session.commit()
    db_session.refresh(invoice)
    return invoice
