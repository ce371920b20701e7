"""
Inventory Service
Stock counters for products.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...db.models import Inventory, Product
from ..errors import (
    InsufficientStockError,
    InternalError,
    InvalidRequestError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 5


class InventoryService:
    """
    Inventory operations.

    Stock never goes below zero: adjustments that would do so are rejected
    with InsufficientStockError.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_inventory(self, product_id: int, lock: bool = False) -> Optional[Inventory]:
        """
        Get the inventory row of a product.

        Args:
            product_id: Product ID
            lock: Take a row lock (SELECT ... FOR UPDATE) for the transaction
        """
        query = self.db.query(Inventory).filter(Inventory.product_id == product_id)
        if lock:
            query = query.with_for_update()
        try:
            return query.first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching inventory: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to fetch inventory")

    def create_inventory(
        self,
        product_id: int,
        stock: int = 0,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        commit: bool = True,
    ) -> Inventory:
        """Create the inventory row of a product."""
        if stock < 0:
            raise InvalidRequestError("Stock cannot be negative", field="stock")

        inventory = Inventory(
            product_id=product_id, stock=stock, low_stock_threshold=low_stock_threshold
        )
        try:
            self.db.add(inventory)
            if commit:
                self.db.commit()
                self.db.refresh(inventory)
            else:
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating inventory: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to create inventory")

        return inventory

    def update_inventory(
        self,
        product_id: int,
        stock: int,
        low_stock_threshold: Optional[int] = None,
    ) -> Tuple[Inventory, Product]:
        """
        Set the stock (and optionally the threshold) of a product.

        Returns:
            The updated inventory and its product

        Raises:
            InvalidRequestError: if stock is negative
            ResourceNotFoundError: if the product has no inventory row
        """
        if stock < 0:
            raise InvalidRequestError("Stock cannot be negative", field="stock")
        if low_stock_threshold is not None and low_stock_threshold < 0:
            raise InvalidRequestError(
                "Low stock threshold cannot be negative", field="low_stock_threshold"
            )

        inventory = self.get_inventory(product_id, lock=True)
        if inventory is None:
            raise ResourceNotFoundError("Inventory", product_id)

        inventory.stock = stock
        if low_stock_threshold is not None:
            inventory.low_stock_threshold = low_stock_threshold

        try:
            self.db.commit()
            self.db.refresh(inventory)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating inventory: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to update inventory")

        logger.info(
            "Inventory updated",
            extra={"product_id": product_id, "stock": stock},
        )
        return inventory, inventory.product

    def adjust_stock(
        self, product_id: int, adjustment: int, reason: Optional[str] = None
    ) -> Inventory:
        """
        Add (positive) or remove (negative) units.

        Raises:
            ResourceNotFoundError: if the product has no inventory row
            InsufficientStockError: if the result would be negative
        """
        inventory = self.get_inventory(product_id, lock=True)
        if inventory is None:
            raise ResourceNotFoundError("Inventory", product_id)

        new_stock = inventory.stock + adjustment
        if new_stock < 0:
            self.db.rollback()
            raise InsufficientStockError("stock", inventory.stock, -adjustment)

        inventory.stock = new_stock
        try:
            self.db.commit()
            self.db.refresh(inventory)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adjusting stock: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to adjust stock")

        logger.info(
            "Stock adjusted",
            extra={
                "product_id": product_id,
                "adjustment": adjustment,
                "stock": new_stock,
                "reason": reason,
            },
        )
        return inventory

    def reserve_stock(self, product_id: int, qty: int) -> Inventory:
        if qty <= 0:
            raise InvalidRequestError("Quantity must be positive", field="qty")
        return self.adjust_stock(product_id, -qty, reason="reserve")

    def release_stock(self, product_id: int, qty: int) -> Inventory:
        if qty <= 0:
            raise InvalidRequestError("Quantity must be positive", field="qty")
        return self.adjust_stock(product_id, qty, reason="release")

    def get_available_stock(self, product_id: int, lock: bool = False) -> int:
        """Units in stock; a product without an inventory row has none."""
        inventory = self.get_inventory(product_id, lock=lock)
        return inventory.stock if inventory is not None else 0

    def check_stock_availability(self, product_id: int, qty: int) -> bool:
        return self.get_available_stock(product_id) >= qty

    def get_low_stock_products(self) -> List[Inventory]:
        """Inventory rows at or below their threshold, lowest stock first."""
        try:
            return (
                self.db.query(Inventory)
                .options(joinedload(Inventory.product))
                .filter(Inventory.stock <= Inventory.low_stock_threshold)
                .order_by(Inventory.stock.asc(), Inventory.product_id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching low stock products: {e}")
            raise InternalError("Failed to fetch low stock products")

    def delete_inventory(self, product_id: int) -> None:
        try:
            self.db.query(Inventory).filter(Inventory.product_id == product_id).delete(
                synchronize_session="fetch"
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting inventory: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to delete inventory")

    def get_inventory_stats(self) -> dict:
        """
        Aggregate inventory figures.

        Returns:
            total_products, low_stock_count, out_of_stock_count and
            total_stock_value (stock times retail price)
        """
        try:
            total = self.db.query(func.count(Inventory.product_id)).scalar()
            low = (
                self.db.query(func.count(Inventory.product_id))
                .filter(Inventory.stock <= Inventory.low_stock_threshold)
                .scalar()
            )
            out = (
                self.db.query(func.count(Inventory.product_id))
                .filter(Inventory.stock == 0)
                .scalar()
            )
            rows = (
                self.db.query(Inventory.stock, Product.retail_price)
                .join(Product, Product.id == Inventory.product_id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching inventory stats: {e}")
            raise InternalError("Failed to fetch inventory statistics")

        value = sum((price * stock for stock, price in rows), 0)

        return {
            "total_products": total,
            "low_stock_count": low,
            "out_of_stock_count": out,
            "total_stock_value": float(round(value, 2)),
        }
