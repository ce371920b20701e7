"""
Dependency Injection
FastAPI dependencies for database, Supabase, services and authentication.
"""

import logging
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings
from .errors import ForbiddenError, UnauthorizedError
from .schemas.auth import AuthUser
from .security import extract_bearer_token, verify_token
from .supabase_client import SupabaseAuthGateway, SupabaseStorageGateway, get_supabase_client
from .services.cart_service import CartService
from .services.category_service import CategoryService
from .services.image_service import ImageService
from .services.inventory_service import InventoryService
from .services.pricing_service import PricingService
from .services.product_service import ProductService
from .services.profile_service import ProfileService

logger = logging.getLogger(__name__)

# Database engine and session factory
_engine = None
_SessionLocal = None


def get_db_engine():
    """Get database engine (singleton)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,  # Verify connections before using
        )
        logger.info("Database engine created")
    return _engine


def get_session_factory():
    """Get database session factory (singleton)."""
    global _SessionLocal
    if _SessionLocal is None:
        engine = get_db_engine()
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info("Database session factory created")
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Get database session.

    Use as FastAPI dependency:
        @app.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ==========================================
# Supabase
# ==========================================


def get_auth_gateway() -> SupabaseAuthGateway:
    return SupabaseAuthGateway(get_supabase_client())


def get_storage_gateway() -> SupabaseStorageGateway:
    return SupabaseStorageGateway(get_supabase_client(), get_settings().product_images_bucket)


# ==========================================
# Services
# ==========================================


def get_pricing_service() -> PricingService:
    return PricingService()


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    return InventoryService(db)


def get_image_service(
    db: Session = Depends(get_db),
    storage: SupabaseStorageGateway = Depends(get_storage_gateway),
) -> ImageService:
    return ImageService(db, storage)


def get_product_service(
    db: Session = Depends(get_db),
    images: ImageService = Depends(get_image_service),
) -> ProductService:
    return ProductService(db, images)


def get_cart_service(
    db: Session = Depends(get_db),
    pricing: PricingService = Depends(get_pricing_service),
) -> CartService:
    """
    Get cart service instance.

    Use as FastAPI dependency:
        @app.get("/cart")
        def cart(service: CartService = Depends(get_cart_service)):
            ...
    """
    return CartService(db, pricing)


# ==========================================
# Authentication
# ==========================================


def get_access_token(authorization: Optional[str] = Header(None)) -> str:
    """
    Extract and verify the bearer token of the request.

    Raises:
        UnauthorizedError: 401 if the header is missing or the token is rejected
    """
    token = extract_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Access token required")

    verify_token(token)
    return token


def get_current_user(
    token: str = Depends(get_access_token),
    gateway: SupabaseAuthGateway = Depends(get_auth_gateway),
) -> AuthUser:
    """
    Get the authenticated Supabase user.

    Use as FastAPI dependency to protect routes:
        @app.get("/endpoint")
        def endpoint(current_user: AuthUser = Depends(get_current_user)):
            ...

    Raises:
        UnauthorizedError: 401 if Supabase does not recognise the token
    """
    user = gateway.get_user(token)
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


def require_admin(
    current_user: AuthUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
) -> AuthUser:
    """
    Allow only users whose profile has the admin role.

    Raises:
        ForbiddenError: 403 if the profile is missing or not an admin
    """
    profile = profiles.get_profile(current_user.id)
    if profile is None:
        raise ForbiddenError("User profile not found")

    if profile.role != "admin":
        logger.warning(
            "Non-admin user attempted admin access",
            extra={"user_id": str(current_user.id), "email": current_user.email},
        )
        raise ForbiddenError("Administrator privileges required")

    return current_user
