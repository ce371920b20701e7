"""
Cart request/response schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .catalog import ProductBase

PricingTier = Literal["retail", "distributor"]


class PricingCalculation(BaseModel):
    """Result of pricing a set of cart lines."""

    subtotal: float = Field(..., description="Cart subtotal at the applied tier")
    tier: PricingTier = Field(..., description="Applied pricing tier")
    items_count: int = Field(..., description="Total units in the cart")
    meets_minimum: bool = Field(..., description="Whether the minimum unit count is reached")
    distributor_savings: Optional[float] = Field(
        None, description="Retail minus distributor subtotal, distributor tier only"
    )


class PricingInfo(BaseModel):
    distributor_threshold: float
    minimum_items: int


class SavingsSummary(BaseModel):
    retail_total: float
    distributor_total: float
    potential_savings: float
    qualifies_for_distributor: bool


class CartResponse(BaseModel):
    id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CartItemResponse(BaseModel):
    """Cart line with its product."""

    cart_id: UUID
    product_id: int
    qty: int
    product: ProductBase

    model_config = {"from_attributes": True}


class CartSummary(BaseModel):
    cart: CartResponse
    items: List[CartItemResponse]
    pricing: PricingCalculation
    total_items: int = Field(..., description="Number of distinct lines")


# ==========================================
# Requests
# ==========================================


class AddToCartRequest(BaseModel):
    product_id: int = Field(..., description="Product to add")
    qty: int = Field(..., description="Units to add")


class UpdateCartItemRequest(BaseModel):
    qty: int = Field(..., description="New quantity (0 removes the line)")


# ==========================================
# Responses
# ==========================================


class GetCartResponse(BaseModel):
    success: bool = True
    cart_summary: CartSummary
    pricing_info: PricingInfo


class AddToCartResponse(BaseModel):
    success: bool = True
    item: CartItemResponse
    cart_summary: CartSummary


class UpdateCartItemResponse(BaseModel):
    success: bool = True
    item: Optional[CartItemResponse] = None
    cart_summary: CartSummary


class RemoveFromCartResponse(BaseModel):
    success: bool = True
    cart_summary: CartSummary


class ClearCartResponse(BaseModel):
    success: bool = True
    message: str = "Cart cleared successfully"


class PricingInfoResponse(BaseModel):
    success: bool = True
    pricing_config: PricingInfo


class SavingsResponse(BaseModel):
    success: bool = True
    savings: SavingsSummary
