"""
Database ORM Models
SQLAlchemy ORM models for database tables.
"""

from .models import Base, Category, Product, ProductImage, Inventory, Cart, CartItem, Profile

__all__ = [
    "Base",
    "Category",
    "Product",
    "ProductImage",
    "Inventory",
    "Cart",
    "CartItem",
    "Profile",
]
