"""
Cart Service
Shopping cart operations with stock validation and tiered pricing.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ...db.models import Cart, CartItem, Product
from ..errors import InternalError, InvalidRequestError, ResourceNotFoundError
from ..schemas.cart import (
    CartItemResponse,
    CartResponse,
    CartSummary,
    SavingsSummary,
)
from .inventory_service import InventoryService
from .pricing_service import PricingService

logger = logging.getLogger(__name__)


class CartService:
    """
    Cart operations for a single user.

    Every user owns at most one cart, created on first access. Quantities
    written to the cart are checked against the product's stock while the
    inventory row is locked, so two concurrent adds cannot both pass the
    check on the same units.
    """

    def __init__(self, db: Session, pricing: Optional[PricingService] = None):
        self.db = db
        self.pricing = pricing or PricingService()
        self.inventory = InventoryService(db)

    def _find_cart(self, user_id: UUID) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.user_id == user_id).first()

    def get_or_create_cart(self, user_id: UUID) -> Cart:
        try:
            cart = self._find_cart(user_id)
            if cart is not None:
                return cart

            now = datetime.utcnow()
            cart = Cart(user_id=user_id, created_at=now, updated_at=now)
            self.db.add(cart)
            self.db.commit()
            self.db.refresh(cart)
        except IntegrityError:
            # A concurrent request created the cart first
            self.db.rollback()
            cart = self._find_cart(user_id)
            if cart is None:
                raise InternalError("Failed to get or create cart")
            return cart
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error getting cart: {e}", extra={"user_id": str(user_id)})
            raise InternalError("Failed to get or create cart")

        logger.info("New cart created", extra={"user_id": str(user_id), "cart_id": str(cart.id)})
        return cart

    def get_cart_items(self, cart_id: UUID) -> List[CartItem]:
        """Lines of a cart whose product is active, ordered by product name."""
        try:
            return (
                self.db.query(CartItem)
                .join(Product, Product.id == CartItem.product_id)
                .options(selectinload(CartItem.product))
                .filter(CartItem.cart_id == cart_id, Product.active.is_(True))
                .order_by(Product.name.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching cart items: {e}", extra={"cart_id": str(cart_id)})
            raise InternalError("Failed to fetch cart items")

    def get_cart_summary(self, user_id: UUID) -> CartSummary:
        """
        Build the cart summary: cart, lines with products, pricing and line count.
        """
        cart = self.get_or_create_cart(user_id)
        items = self.get_cart_items(cart.id)
        pricing = self.pricing.calculate_pricing(items)

        logger.debug(
            "Cart summary generated",
            extra={
                "user_id": str(user_id),
                "item_count": len(items),
                "tier": pricing.tier,
                "subtotal": pricing.subtotal,
            },
        )

        return CartSummary(
            cart=CartResponse.model_validate(cart),
            items=[CartItemResponse.model_validate(item) for item in items],
            pricing=pricing,
            total_items=len(items),
        )

    def get_savings(self, user_id: UUID) -> SavingsSummary:
        cart = self.get_or_create_cart(user_id)
        return self.pricing.get_savings_summary(self.get_cart_items(cart.id))

    def _get_available_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise ResourceNotFoundError("Product", product_id)
        if not product.active:
            raise InvalidRequestError("Product is not available", field="product_id")
        return product

    def _check_stock(self, product_id: int, qty: int, message: str = "Insufficient stock"):
        """Check qty against stock, locking the inventory row until commit."""
        available = self.inventory.get_available_stock(product_id, lock=True)
        if available < qty:
            raise InvalidRequestError(
                f"{message}. Requested: {qty}, Available: {available}",
                field="qty",
                details={"field": "qty", "requested": qty, "available": available},
            )

    def _get_item(self, cart_id: UUID, product_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .first()
        )

    def _touch(self, cart: Cart) -> None:
        cart.updated_at = datetime.utcnow()

    def add_to_cart(self, user_id: UUID, product_id: int, qty: int) -> CartItem:
        """
        Add units of a product; an existing line is incremented.

        Raises:
            InvalidRequestError: if qty is not positive, the product is
                inactive, or stock does not cover the resulting quantity
            ResourceNotFoundError: if the product does not exist
        """
        if qty <= 0:
            raise InvalidRequestError("Quantity must be greater than 0", field="qty")

        cart = self.get_or_create_cart(user_id)
        try:
            self._get_available_product(product_id)
            self._check_stock(product_id, qty)

            item = self._get_item(cart.id, product_id)
            if item is not None:
                new_qty = item.qty + qty
                self._check_stock(product_id, new_qty, "Insufficient stock for total quantity")
                item.qty = new_qty
                action = "updated"
            else:
                item = CartItem(cart_id=cart.id, product_id=product_id, qty=qty)
                self.db.add(item)
                action = "added"

            self._touch(cart)
            self.db.commit()
            self.db.refresh(item)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error adding to cart: {e}",
                extra={"user_id": str(user_id), "product_id": product_id, "qty": qty},
            )
            raise InternalError("Failed to add item to cart")
        except Exception:
            # Release the inventory lock before the domain error propagates
            self.db.rollback()
            raise

        logger.info(
            "Item added to cart",
            extra={
                "user_id": str(user_id),
                "product_id": product_id,
                "qty": item.qty,
                "action": action,
            },
        )
        return item

    def update_cart_item(self, user_id: UUID, product_id: int, qty: int) -> Optional[CartItem]:
        """
        Set the quantity of a line; 0 removes it and returns None.

        Raises:
            InvalidRequestError: if qty is negative, the product is inactive,
                or stock does not cover qty
            ResourceNotFoundError: if the product does not exist or is not in the cart
        """
        if qty < 0:
            raise InvalidRequestError("Quantity cannot be negative", field="qty")

        if qty == 0:
            self.remove_from_cart(user_id, product_id)
            return None

        cart = self.get_or_create_cart(user_id)
        try:
            self._get_available_product(product_id)
            self._check_stock(product_id, qty)

            item = self._get_item(cart.id, product_id)
            if item is None:
                raise ResourceNotFoundError("Cart item", f"{cart.id}-{product_id}")

            item.qty = qty
            self._touch(cart)
            self.db.commit()
            self.db.refresh(item)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error updating cart item: {e}",
                extra={"user_id": str(user_id), "product_id": product_id, "qty": qty},
            )
            raise InternalError("Failed to update cart item")
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Cart item updated",
            extra={"user_id": str(user_id), "product_id": product_id, "qty": qty},
        )
        return item

    def remove_from_cart(self, user_id: UUID, product_id: int) -> None:
        """Remove a line; removing a product that is not in the cart is a no-op."""
        cart = self.get_or_create_cart(user_id)
        try:
            self.db.query(CartItem).filter(
                CartItem.cart_id == cart.id, CartItem.product_id == product_id
            ).delete(synchronize_session="fetch")
            self._touch(cart)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error removing from cart: {e}",
                extra={"user_id": str(user_id), "product_id": product_id},
            )
            raise InternalError("Failed to remove item from cart")

        logger.info(
            "Item removed from cart",
            extra={"user_id": str(user_id), "product_id": product_id},
        )

    def clear_cart(self, user_id: UUID) -> None:
        cart = self.get_or_create_cart(user_id)
        try:
            self.db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(
                synchronize_session="fetch"
            )
            self._touch(cart)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error clearing cart: {e}", extra={"user_id": str(user_id)})
            raise InternalError("Failed to clear cart")

        logger.info("Cart cleared", extra={"user_id": str(user_id)})
