"""
API Routers
FastAPI route handlers for different endpoints.
"""

from .admin import router as admin_router
from .auth import router as auth_router
from .cart import router as cart_router
from .catalog import router as catalog_router
from .health import router as health_router

__all__ = [
    "health_router",
    "auth_router",
    "catalog_router",
    "cart_router",
    "admin_router",
]
