"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- An in-memory SQLite database with all tables
- In-process fakes for Supabase Auth and Storage
- Signed access tokens for a regular user and an admin
"""

import os
import sys
import time
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-at-least-32-characters-long"
os.environ["API_LOG_LEVEL"] = "WARNING"

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from supabase import StorageException  # noqa: E402

from supplement_store.api.config import get_settings, reset_settings  # noqa: E402
from supplement_store.api.schemas.auth import AuthUser  # noqa: E402
from supplement_store.api.storage import get_public_url  # noqa: E402
from supplement_store.db.models import (  # noqa: E402
    Base,
    Category,
    Inventory,
    Product,
    Profile,
)

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
BUCKET = "product-images"


class FakeAuthGateway:
    """Stands in for Supabase Auth: tokens map to registered users."""

    def __init__(self):
        self.users: Dict[uuid.UUID, AuthUser] = {}
        self.tokens: Dict[str, uuid.UUID] = {}

    def register(self, email: str) -> AuthUser:
        user = AuthUser(id=uuid.uuid4(), email=email, created_at=datetime.utcnow())
        self.users[user.id] = user
        return user

    def issue_token(self, user: AuthUser, expires_in: int = 3600) -> str:
        token = make_token(user.id, expires_in)
        self.tokens[token] = user.id
        return token

    def get_user(self, token: str) -> Optional[AuthUser]:
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id else None

    def get_user_by_id(self, user_id) -> Optional[AuthUser]:
        return self.users.get(user_id)

    def list_users(self, page: int, per_page: int) -> List[AuthUser]:
        users = list(self.users.values())
        start = (page - 1) * per_page
        return users[start:start + per_page]


class FakeStorageGateway:
    """Stands in for the product-images bucket."""

    def __init__(self, bucket: str = BUCKET):
        self.bucket = bucket
        self.signed: List[str] = []
        self.removed: List[str] = []
        self.fail_remove = False

    def create_signed_upload_url(self, path: str) -> str:
        self.signed.append(path)
        return f"https://test.supabase.co/storage/v1/object/upload/sign/{self.bucket}/{path}?token=t"

    def get_public_url(self, path: str) -> str:
        return get_public_url(path, self.bucket)

    def remove(self, paths: List[str]) -> None:
        if self.fail_remove:
            raise StorageException("storage unavailable")
        self.removed.extend(paths)


def make_token(user_id, expires_in: int = 3600, secret: str = JWT_SECRET) -> str:
    """Sign an access token the way Supabase Auth does."""
    now = int(time.time())
    claims = {
        "sub": str(user_id),
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def settings():
    """Fresh settings for every test."""
    reset_settings()
    yield get_settings()
    reset_settings()


@pytest.fixture
def db_session():
    """
    Provide a database session for tests.

    Creates tables before the test and drops them after.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def auth_gateway():
    return FakeAuthGateway()


@pytest.fixture
def storage_gateway():
    return FakeStorageGateway()


@pytest.fixture
def app(db_session, auth_gateway, storage_gateway):
    """Application with the database and Supabase replaced by test doubles."""
    from supplement_store.api.dependencies import get_auth_gateway, get_db, get_storage_gateway
    from supplement_store.api.main import create_app

    application = create_app()

    def override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_auth_gateway] = lambda: auth_gateway
    application.dependency_overrides[get_storage_gateway] = lambda: storage_gateway

    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def user(auth_gateway):
    return auth_gateway.register("customer@example.com")


@pytest.fixture
def user_headers(auth_gateway, user):
    return {"Authorization": f"Bearer {auth_gateway.issue_token(user)}"}


@pytest.fixture
def admin(auth_gateway, db_session):
    admin_user = auth_gateway.register("admin@example.com")
    db_session.add(Profile(user_id=admin_user.id, role="admin"))
    db_session.commit()
    return admin_user


@pytest.fixture
def admin_headers(auth_gateway, admin):
    return {"Authorization": f"Bearer {auth_gateway.issue_token(admin)}"}


@pytest.fixture
def make_category(db_session):
    def _make(name: str) -> Category:
        category = Category(name=name)
        db_session.add(category)
        db_session.commit()
        return category

    return _make


@pytest.fixture
def make_product(db_session):
    """Factory inserting a product with its inventory row."""
    counter = {"n": 0}

    def _make(
        retail_price="100.00",
        distributor_price="80.00",
        stock: Optional[int] = 50,
        active: bool = True,
        name: Optional[str] = None,
        sku: Optional[str] = None,
        category: Optional[Category] = None,
        description: Optional[str] = None,
        low_stock_threshold: int = 5,
    ) -> Product:
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']:03d}",
            description=description,
            category_id=category.id if category else None,
            retail_price=Decimal(str(retail_price)),
            distributor_price=Decimal(str(distributor_price)),
            active=active,
        )
        db_session.add(product)
        db_session.flush()
        if stock is not None:
            db_session.add(
                Inventory(
                    product_id=product.id,
                    stock=stock,
                    low_stock_threshold=low_stock_threshold,
                )
            )
        db_session.commit()
        return product

    return _make


@pytest.fixture
def token_factory():
    """Sign access tokens: token_factory(user_id, expires_in=3600, secret=...)."""
    return make_token
