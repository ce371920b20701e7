"""
Cart Endpoints
The authenticated user's shopping cart.
"""

import logging

from fastapi import APIRouter, Depends, status

from ..dependencies import get_cart_service, get_current_user, get_pricing_service
from ..schemas.auth import AuthUser
from ..schemas.cart import (
    AddToCartRequest,
    AddToCartResponse,
    CartItemResponse,
    ClearCartResponse,
    GetCartResponse,
    PricingInfoResponse,
    RemoveFromCartResponse,
    SavingsResponse,
    UpdateCartItemRequest,
    UpdateCartItemResponse,
)
from ..services.cart_service import CartService
from ..services.pricing_service import PricingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=GetCartResponse, status_code=status.HTTP_200_OK)
def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
    pricing: PricingService = Depends(get_pricing_service),
):
    """
    Get the cart.

    Returns the lines with their products, the applied pricing tier and the
    pricing thresholds.
    """
    summary = cart.get_cart_summary(current_user.id)
    return GetCartResponse(cart_summary=summary, pricing_info=pricing.get_pricing_config())


@router.post("/items", response_model=AddToCartResponse, status_code=status.HTTP_200_OK)
def add_to_cart(
    request: AddToCartRequest,
    current_user: AuthUser = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
):
    """Add units of a product; an existing line is incremented."""
    item = cart.add_to_cart(current_user.id, request.product_id, request.qty)
    item_response = CartItemResponse.model_validate(item)

    return AddToCartResponse(
        item=item_response,
        cart_summary=cart.get_cart_summary(current_user.id),
    )


@router.patch(
    "/items/{product_id}",
    response_model=UpdateCartItemResponse,
    status_code=status.HTTP_200_OK,
)
def update_cart_item(
    product_id: int,
    request: UpdateCartItemRequest,
    current_user: AuthUser = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
):
    """Set the quantity of a line (0 removes it)."""
    item = cart.update_cart_item(current_user.id, product_id, request.qty)
    item_response = CartItemResponse.model_validate(item) if item is not None else None

    return UpdateCartItemResponse(
        item=item_response,
        cart_summary=cart.get_cart_summary(current_user.id),
    )


@router.delete(
    "/items/{product_id}",
    response_model=RemoveFromCartResponse,
    status_code=status.HTTP_200_OK,
)
def remove_from_cart(
    product_id: int,
    current_user: AuthUser = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
):
    cart.remove_from_cart(current_user.id, product_id)
    return RemoveFromCartResponse(cart_summary=cart.get_cart_summary(current_user.id))


@router.delete("/clear", response_model=ClearCartResponse, status_code=status.HTTP_200_OK)
def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
):
    cart.clear_cart(current_user.id)
    return ClearCartResponse()


@router.get("/pricing-info", response_model=PricingInfoResponse, status_code=status.HTTP_200_OK)
def get_pricing_info(
    current_user: AuthUser = Depends(get_current_user),
    pricing: PricingService = Depends(get_pricing_service),
):
    """Distributor threshold and minimum order units."""
    return PricingInfoResponse(pricing_config=pricing.get_pricing_config())


@router.get("/savings", response_model=SavingsResponse, status_code=status.HTTP_200_OK)
def get_savings(
    current_user: AuthUser = Depends(get_current_user),
    cart: CartService = Depends(get_cart_service),
):
    """Retail versus distributor totals of the current cart."""
    return SavingsResponse(savings=cart.get_savings(current_user.id))
