"""
modules/work_orders/pricing.py — Line and work-order money arithmetic.

All amounts are rounded to cents and clamped at zero. Price tiers compare a
customer price against the supplier's suggested retail and are advisory only.
"""

from dataclasses import dataclass, asdict
from typing import Iterable, Optional

# Markup applied to non-inventory parts when the user does not supply one
DEFAULT_NON_INVENTORY_MARKUP = 30.0

# (upper bound of customer_price / suggested_retail, tier)
PRICE_TIERS = (
    (1.00, "good"),
    (1.10, "caution"),
    (1.25, "high"),
)
ABOVE_ALL_TIERS = "well above"


def _money(value: float) -> float:
    return max(round(value, 2), 0.0)


def calculate_customer_price(supplier_cost: Optional[float], markup_percentage: Optional[float]) -> float:
    """Supplier cost plus markup, rounded to cents."""
    cost = supplier_cost or 0.0
    markup = markup_percentage or 0.0
    return _money(cost * (1 + markup / 100))


def classify_price(customer_price: Optional[float], supplier_suggested_retail: Optional[float]) -> Optional[str]:
    """Return the price tier, or None when there is no suggested retail to compare to."""
    if not supplier_suggested_retail or supplier_suggested_retail <= 0 or customer_price is None:
        return None
    ratio = customer_price / supplier_suggested_retail
    for upper, tier in PRICE_TIERS:
        if ratio <= upper:
            return tier
    return ABOVE_ALL_TIERS


def line_total(quantity: Optional[float], unit_price: Optional[float]) -> float:
    return _money((quantity or 0) * (unit_price or 0))


def labor_total(hours: Optional[float], rate: Optional[float]) -> float:
    return _money((hours or 0) * (rate or 0))


@dataclass
class WorkOrderTotals:
    labor_total: float = 0.0
    parts_total: float = 0.0
    taxable_parts_total: float = 0.0
    core_charges: float = 0.0
    eco_fees: float = 0.0
    grand_total: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def work_order_totals(job_lines: Iterable, parts: Iterable) -> WorkOrderTotals:
    """Sum labour and parts for an invoice view.

    Accepts ORM rows or any objects exposing the same attribute names.
    Core charges and eco fees count only when applied, once per unit.
    """
    totals = WorkOrderTotals()
    for line in job_lines:
        totals.labor_total += line.total_amount or 0
    for part in parts:
        price = part.total_price or 0
        totals.parts_total += price
        if part.is_taxable:
            totals.taxable_parts_total += price
        if part.core_charge_applied and part.core_charge_amount:
            totals.core_charges += part.core_charge_amount * (part.quantity or 0)
        if part.eco_fee_applied and part.eco_fee_amount:
            totals.eco_fees += part.eco_fee_amount * (part.quantity or 0)

    totals.labor_total = _money(totals.labor_total)
    totals.parts_total = _money(totals.parts_total)
    totals.taxable_parts_total = _money(totals.taxable_parts_total)
    totals.core_charges = _money(totals.core_charges)
    totals.eco_fees = _money(totals.eco_fees)
    totals.grand_total = _money(
        totals.labor_total + totals.parts_total + totals.core_charges + totals.eco_fees
    )
    return totals


def refresh_total_cost(db, work_order_id: int) -> float:
    """Store the current grand total on the work order row.

    Called inside the caller's transaction; flushes pending line item changes first.
    """
    from modules.work_orders.models import JobLine, Part, WorkOrder

    db.flush()
    lines = db.query(JobLine).filter(JobLine.work_order_id == work_order_id).all()
    parts = db.query(Part).filter(Part.work_order_id == work_order_id).all()
    total = work_order_totals(lines, parts).grand_total
    db.query(WorkOrder).filter(WorkOrder.id == work_order_id).update(
        {WorkOrder.total_cost: total}, synchronize_session=False
    )
    return total
