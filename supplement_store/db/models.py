"""
SQLAlchemy ORM Models
Database table definitions for the catalog, cart and profile tables.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Boolean, TIMESTAMP,
    ForeignKey, Numeric, Text, Uuid, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Category(Base):
    """Product category."""
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"


class Product(Base):
    """
    Product model.

    Each product carries two prices: the retail price and the discounted
    distributor price applied once the cart reaches the distributor threshold.
    """
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete='SET NULL'),
                         nullable=True, index=True)

    # Pricing
    retail_price = Column(Numeric(10, 2), nullable=False)
    distributor_price = Column(Numeric(10, 2), nullable=False)

    active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    # Relationships
    category = relationship("Category", back_populates="products")
    images = relationship("ProductImage", back_populates="product",
                          cascade="all, delete-orphan",
                          order_by=lambda: [ProductImage.is_primary.desc(), ProductImage.id])
    inventory = relationship("Inventory", back_populates="product", uselist=False,
                             cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('retail_price >= 0', name='ck_products_retail_price'),
        CheckConstraint('distributor_price >= 0', name='ck_products_distributor_price'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, sku={self.sku})>"


class ProductImage(Base):
    """Image stored in the product-images bucket."""
    __tablename__ = 'product_images'

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    url = Column(Text, nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)

    product = relationship("Product", back_populates="images")

    def __repr__(self):
        return f"<ProductImage(id={self.id}, product_id={self.product_id})>"


class Inventory(Base):
    """Stock counter, one row per product."""
    __tablename__ = 'inventory'

    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'),
                        primary_key=True)
    stock = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)

    product = relationship("Product", back_populates="inventory")

    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_inventory_stock'),
    )

    def __repr__(self):
        return f"<Inventory(product_id={self.product_id}, stock={self.stock})>"


class Cart(Base):
    """Shopping cart; each user owns at most one."""
    __tablename__ = 'carts'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, unique=True, nullable=False, index=True,
                     comment='Supabase auth user id')

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Cart(id={self.id}, user_id={self.user_id})>"


class CartItem(Base):
    """A product line in a cart."""
    __tablename__ = 'cart_items'

    cart_id = Column(Uuid, ForeignKey('carts.id', ondelete='CASCADE'), primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'),
                        primary_key=True)
    qty = Column(Integer, nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint('qty > 0', name='ck_cart_items_qty'),
    )

    def __repr__(self):
        return f"<CartItem(cart_id={self.cart_id}, product_id={self.product_id}, qty={self.qty})>"


class Profile(Base):
    """
    Application profile for a Supabase auth user.

    Holds the role used by the admin guard and the terms acceptance time.
    """
    __tablename__ = 'profiles'

    user_id = Column(Uuid, primary_key=True)
    role = Column(String(20), nullable=False, default='user')
    terms_accepted_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name='ck_profiles_role'),
    )

    def __repr__(self):
        return f"<Profile(user_id={self.user_id}, role={self.role})>"
