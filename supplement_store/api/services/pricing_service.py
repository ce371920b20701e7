"""
Pricing Service
Tiered pricing for cart lines.

A cart whose retail subtotal reaches the distributor threshold is priced at
the distributor price of every product. Separately, a cart must hold a
minimum number of units before it can be ordered.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

from ..config import get_settings
from ..schemas.cart import PricingCalculation, PricingInfo, PricingTier, SavingsSummary

logger = logging.getLogger(__name__)

Money = Union[Decimal, float, int, str]

_CENT = Decimal("0.01")


def _money(value: Money) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value: Money) -> Decimal:
    """Round to cents, half-up."""
    return _money(value).quantize(_CENT, rounding=ROUND_HALF_UP)


class PricingService:
    """
    Pricing rules for the retail and distributor tiers.

    Lines passed to the calculations are anything with a ``qty`` and a
    ``product`` carrying ``retail_price`` and ``distributor_price`` (cart items).
    """

    def __init__(
        self,
        distributor_threshold: Optional[Money] = None,
        minimum_order_items: Optional[int] = None,
    ):
        settings = get_settings()
        self.distributor_threshold = _money(
            distributor_threshold
            if distributor_threshold is not None
            else settings.distributor_threshold
        )
        self.minimum_order_items = (
            minimum_order_items
            if minimum_order_items is not None
            else settings.minimum_order_items
        )

    def calculate_pricing(self, items: Iterable) -> PricingCalculation:
        """
        Price a set of cart lines.

        Args:
            items: Cart lines

        Returns:
            PricingCalculation with subtotal, tier, unit count, minimum flag
            and distributor savings (null below the threshold or when zero)
        """
        retail_subtotal = Decimal("0")
        distributor_subtotal = Decimal("0")
        items_count = 0

        for item in items:
            qty = int(item.qty)
            retail_subtotal += _money(item.product.retail_price) * qty
            distributor_subtotal += _money(item.product.distributor_price) * qty
            items_count += qty

        if self.qualifies_for_distributor_pricing(retail_subtotal):
            tier = "distributor"
            subtotal = distributor_subtotal
            savings = round_money(retail_subtotal - distributor_subtotal)
        else:
            tier = "retail"
            subtotal = retail_subtotal
            savings = None

        return PricingCalculation(
            subtotal=float(round_money(subtotal)),
            tier=tier,
            items_count=items_count,
            meets_minimum=self.meets_minimum_items(items_count),
            distributor_savings=float(savings) if savings else None,
        )

    def get_pricing_config(self) -> PricingInfo:
        return PricingInfo(
            distributor_threshold=float(self.distributor_threshold),
            minimum_items=self.minimum_order_items,
        )

    def qualifies_for_distributor_pricing(self, subtotal: Money) -> bool:
        return _money(subtotal) >= self.distributor_threshold

    def meets_minimum_items(self, items_count: int) -> bool:
        return items_count >= self.minimum_order_items

    def get_unit_price(
        self, retail_price: Money, distributor_price: Money, tier: PricingTier
    ) -> Decimal:
        """Unit price of a product at the given tier."""
        return _money(distributor_price if tier == "distributor" else retail_price)

    def calculate_line_total(
        self, retail_price: Money, distributor_price: Money, qty: int, tier: PricingTier
    ) -> Decimal:
        """Price of one cart line at the given tier, rounded to cents."""
        return round_money(self.get_unit_price(retail_price, distributor_price, tier) * qty)

    def get_savings_summary(self, items: Iterable) -> SavingsSummary:
        """
        Compare the retail and distributor totals of a set of cart lines.

        Potential savings are reported whether or not the cart currently
        qualifies for the distributor tier.
        """
        retail_total = Decimal("0")
        distributor_total = Decimal("0")

        for item in items:
            retail_total += _money(item.product.retail_price) * item.qty
            distributor_total += _money(item.product.distributor_price) * item.qty

        return SavingsSummary(
            retail_total=float(round_money(retail_total)),
            distributor_total=float(round_money(distributor_total)),
            potential_savings=float(round_money(retail_total - distributor_total)),
            qualifies_for_distributor=self.qualifies_for_distributor_pricing(retail_total),
        )
