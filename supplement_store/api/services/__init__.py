"""
API Services
Business logic services for API endpoints.
"""

from .cart_service import CartService
from .category_service import CategoryService
from .image_service import ImageService
from .inventory_service import InventoryService
from .pricing_service import PricingService
from .product_service import ProductService
from .profile_service import ProfileService

__all__ = [
    "CartService",
    "CategoryService",
    "ImageService",
    "InventoryService",
    "PricingService",
    "ProductService",
    "ProfileService",
]
