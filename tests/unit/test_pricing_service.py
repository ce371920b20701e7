"""
Tests for tiered pricing.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from supplement_store.api.services.pricing_service import PricingService, round_money


def line(retail, distributor, qty):
    product = SimpleNamespace(retail_price=Decimal(retail), distributor_price=Decimal(distributor))
    return SimpleNamespace(product=product, qty=qty)


@pytest.fixture
def pricing():
    return PricingService()


class TestCalculatePricing:
    """Tests for PricingService.calculate_pricing."""

    def test_empty_cart(self, pricing):
        result = pricing.calculate_pricing([])

        assert result.subtotal == 0
        assert result.tier == "retail"
        assert result.items_count == 0
        assert result.meets_minimum is False
        assert result.distributor_savings is None

    def test_below_threshold_uses_retail(self, pricing):
        result = pricing.calculate_pricing([line("1000.00", "800.00", 4)])

        assert result.tier == "retail"
        assert result.subtotal == 4000.0
        assert result.distributor_savings is None

    def test_threshold_reached_exactly_uses_distributor(self, pricing):
        result = pricing.calculate_pricing([line("1000.00", "800.00", 5)])

        assert result.tier == "distributor"
        assert result.subtotal == 4000.0
        assert result.distributor_savings == 1000.0

    def test_threshold_is_checked_on_retail_subtotal(self, pricing):
        # Distributor subtotal is below the threshold, retail is above
        result = pricing.calculate_pricing([line("2600.00", "2000.00", 2)])

        assert result.tier == "distributor"
        assert result.subtotal == 4000.0
        assert result.distributor_savings == 1200.0

    def test_zero_savings_reported_as_null(self, pricing):
        result = pricing.calculate_pricing([line("5000.00", "5000.00", 1)])

        assert result.tier == "distributor"
        assert result.distributor_savings is None

    def test_items_count_sums_units(self, pricing):
        result = pricing.calculate_pricing(
            [line("10.00", "8.00", 3), line("20.00", "15.00", 4)]
        )

        assert result.items_count == 7
        assert result.meets_minimum is True
        assert result.subtotal == 110.0

    def test_minimum_not_met(self, pricing):
        result = pricing.calculate_pricing([line("10.00", "8.00", 6)])

        assert result.items_count == 6
        assert result.meets_minimum is False

    def test_rounding_half_up(self, pricing):
        result = pricing.calculate_pricing([line("0.125", "0.10", 1)])

        assert result.subtotal == 0.13

    def test_custom_thresholds(self):
        pricing = PricingService(distributor_threshold=100, minimum_order_items=2)
        result = pricing.calculate_pricing([line("60.00", "50.00", 2)])

        assert result.tier == "distributor"
        assert result.subtotal == 100.0
        assert result.meets_minimum is True


class TestPricingHelpers:
    """Tests for the single-value helpers."""

    def test_pricing_config_from_settings(self, pricing):
        config = pricing.get_pricing_config()

        assert config.distributor_threshold == 5000.0
        assert config.minimum_items == 7

    def test_qualifies_for_distributor_pricing(self, pricing):
        assert pricing.qualifies_for_distributor_pricing(Decimal("5000")) is True
        assert pricing.qualifies_for_distributor_pricing(4999.99) is False

    def test_meets_minimum_items(self, pricing):
        assert pricing.meets_minimum_items(7) is True
        assert pricing.meets_minimum_items(6) is False

    def test_unit_price_by_tier(self, pricing):
        assert pricing.get_unit_price("10.00", "8.00", "retail") == Decimal("10.00")
        assert pricing.get_unit_price("10.00", "8.00", "distributor") == Decimal("8.00")

    def test_line_total(self, pricing):
        assert pricing.calculate_line_total("10.005", "8.00", 1, "retail") == Decimal("10.01")
        assert pricing.calculate_line_total("10.00", "8.25", 3, "distributor") == Decimal("24.75")

    def test_round_money(self):
        assert round_money("2.675") == Decimal("2.68")
        assert round_money(1) == Decimal("1.00")


class TestSavingsSummary:
    def test_savings_below_threshold(self, pricing):
        summary = pricing.get_savings_summary([line("100.00", "75.00", 2)])

        assert summary.retail_total == 200.0
        assert summary.distributor_total == 150.0
        assert summary.potential_savings == 50.0
        assert summary.qualifies_for_distributor is False

    def test_savings_above_threshold(self, pricing):
        summary = pricing.get_savings_summary([line("1000.00", "900.00", 6)])

        assert summary.potential_savings == 600.0
        assert summary.qualifies_for_distributor is True

    def test_empty(self, pricing):
        summary = pricing.get_savings_summary([])

        assert summary.retail_total == 0
        assert summary.potential_savings == 0
        assert summary.qualifies_for_distributor is False
