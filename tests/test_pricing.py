"""
Pricing helpers — customer price, price tiers, line totals and work order totals.

Run:
    pytest tests/test_pricing.py -v --tb=short
"""

from types import SimpleNamespace

import pytest

from modules.work_orders.pricing import (
    calculate_customer_price, classify_price, labor_total, line_total, work_order_totals,
)


class TestCustomerPrice:
    @pytest.mark.parametrize("cost, markup, expected", [
        (10, 30, 13.0),
        (12.5, 20, 15.0),
        (8.4, 10, 9.24),
        (7.35, 0, 7.35),
        (0, 50, 0.0),
    ])
    def test_cost_plus_markup_rounded_to_cents(self, cost, markup, expected):
        assert calculate_customer_price(cost, markup) == expected

    def test_missing_inputs_count_as_zero(self):
        assert calculate_customer_price(None, 30) == 0.0
        assert calculate_customer_price(10, None) == 10.0


class TestPriceTier:
    @pytest.mark.parametrize("price, retail, tier", [
        (90, 100, "good"),
        (100, 100, "good"),
        (105, 100, "caution"),
        (110, 100, "caution"),
        (110.01, 100, "high"),
        (125, 100, "high"),
        (125.01, 100, "well above"),
        (300, 100, "well above"),
    ])
    def test_boundaries(self, price, retail, tier):
        assert classify_price(price, retail) == tier

    @pytest.mark.parametrize("price, retail", [(50, None), (50, 0), (50, -5), (None, 100)])
    def test_no_tier_without_comparison(self, price, retail):
        assert classify_price(price, retail) is None


class TestLineTotals:
    def test_line_total(self):
        assert line_total(3, 19.99) == 59.97

    def test_labor_total(self):
        assert labor_total(1.5, 80) == 120.0

    def test_negative_results_clamped(self):
        assert labor_total(-2, 80) == 0.0

    def test_none_treated_as_zero(self):
        assert line_total(None, 10) == 0.0


class TestWorkOrderTotals:
    def test_sums_labor_parts_and_fees(self):
        lines = [SimpleNamespace(total_amount=80), SimpleNamespace(total_amount=50)]
        parts = [
            SimpleNamespace(total_price=60, is_taxable=True, quantity=2,
                            core_charge_applied=True, core_charge_amount=15,
                            eco_fee_applied=False, eco_fee_amount=3),
            SimpleNamespace(total_price=10, is_taxable=False, quantity=1,
                            core_charge_applied=False, core_charge_amount=None,
                            eco_fee_applied=True, eco_fee_amount=2.5),
        ]
        totals = work_order_totals(lines, parts)
        assert totals.labor_total == 130
        assert totals.parts_total == 70
        assert totals.taxable_parts_total == 60
        assert totals.core_charges == 30
        assert totals.eco_fees == 2.5
        assert totals.grand_total == 232.5

    def test_empty(self):
        assert work_order_totals([], []).to_dict() == {
            "labor_total": 0.0, "parts_total": 0.0, "taxable_parts_total": 0.0,
            "core_charges": 0.0, "eco_fees": 0.0, "grand_total": 0.0,
        }
