"""
modules/work_orders/validation.py — Enum coercion and part form pre-validation.
"""

import logging
from enum import Enum
from typing import Optional, Type

from core.base import PartType
from core.errors import InvalidEnumValue, ValidationError

log = logging.getLogger("shop.repo")

PART_FLAGS = ("is_taxable", "core_charge_applied", "eco_fee_applied", "is_stock_item")
PART_AMOUNTS = ("quantity", "unit_price")
JOB_LINE_AMOUNTS = ("estimated_hours", "labor_rate", "display_order")
WORK_ORDER_ENUMS = ("status", "priority")


def normalize_enum(value, enum_cls: Type[Enum], default: Enum, *, field: str, strict: bool = False) -> Enum:
    """Return the enum member for value.

    Missing values become default. Unrecognised values become default with a
    warning, or raise InvalidEnumValue when strict.
    """
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = [m.value for m in enum_cls]
        if strict:
            raise InvalidEnumValue(field, value, allowed)
        log.warning(f"Unrecognised {field} {value!r}; using {default.value!r}")
        return default


def reject_nulls(record: dict, fields, entity: str) -> None:
    """Raise when a supplied field that the column always needs is None."""
    errors = {key: "must not be null" for key in fields if key in record and record[key] is None}
    if errors:
        raise ValidationError(f"Invalid {entity}", details=errors)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_part_record(record: dict, *, partial: bool = False) -> None:
    """Check the fields a part cannot be saved without.

    Raises ValidationError whose details map each bad field to a message.
    With partial=True only the supplied fields are checked.
    """
    errors: dict[str, str] = {}

    for key, label in (("name", "Part name"), ("part_number", "Part number")):
        if (not partial or key in record) and _blank(record.get(key)):
            errors[key] = f"{label} is required"

    if not partial or "part_type" in record:
        part_type = record.get("part_type")
        if _blank(part_type):
            errors["part_type"] = "Part type is required"
        elif not isinstance(part_type, PartType):
            try:
                PartType(str(part_type))
            except ValueError:
                errors["part_type"] = f"must be one of {', '.join(m.value for m in PartType)}"

    for key in ("customer_price", "unit_price", "supplier_cost"):
        value: Optional[float] = record.get(key)
        if value is not None and value < 0:
            errors[key] = "must not be negative"

    quantity = record.get("quantity")
    if quantity is not None and quantity < 1:
        errors["quantity"] = "must be at least 1"

    # Flags always need a value; on create missing prices are derived instead
    for key in PART_FLAGS + (PART_AMOUNTS if partial else ()):
        if key in record and record[key] is None:
            errors[key] = "must not be null"

    if errors:
        raise ValidationError("Invalid part", details=errors)
