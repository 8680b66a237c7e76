"""
modules/work_orders/mappers.py — Form <-> record translation for parts and job lines.

Forms arrive in the UI's camelCase shape; rows are snake_case. This module is
the only place that knows both spellings. Snake_case keys are accepted on the
way in too, so internal callers can pass record-shaped values.
"""

from datetime import datetime
from typing import Any

# (form key, record key)
PART_FIELDS = (
    ("partName", "name"),
    ("partNumber", "part_number"),
    ("partType", "part_type"),
    ("category", "category"),
    ("quantity", "quantity"),
    ("unitPrice", "unit_price"),
    ("totalPrice", "total_price"),
    ("supplierName", "supplier_name"),
    ("supplierCost", "supplier_cost"),
    ("supplierSuggestedRetailPrice", "supplier_suggested_retail"),
    ("markupPercentage", "markup_percentage"),
    ("retailPrice", "retail_price"),
    ("customerPrice", "customer_price"),
    ("invoiceNumber", "invoice_number"),
    ("poLine", "po_line"),
    ("isTaxable", "is_taxable"),
    ("coreChargeAmount", "core_charge_amount"),
    ("coreChargeApplied", "core_charge_applied"),
    ("ecoFeeAmount", "eco_fee_amount"),
    ("ecoFeeApplied", "eco_fee_applied"),
    ("warrantyDuration", "warranty_duration"),
    ("installDate", "install_date"),
    ("installedBy", "installed_by"),
    ("status", "status"),
    ("isStockItem", "is_stock_item"),
    ("notes", "notes"),
    ("notesInternal", "notes_internal"),
    ("jobLineId", "job_line_id"),
)

JOB_LINE_FIELDS = (
    ("name", "name"),
    ("category", "category"),
    ("subcategory", "subcategory"),
    ("description", "description"),
    ("estimatedHours", "estimated_hours"),
    ("laborRate", "labor_rate"),
    ("laborRateType", "labor_rate_type"),
    ("totalAmount", "total_amount"),
    ("status", "status"),
    ("displayOrder", "display_order"),
    ("isWorkCompleted", "is_work_completed"),
    ("completionDate", "completion_date"),
    ("completedBy", "completed_by"),
    ("notes", "notes"),
)

# Set by the store, never by a form
IMMUTABLE_FIELDS = frozenset({"id", "work_order_id", "created_at", "updated_at"})

_DATE_FIELDS = frozenset({"install_date", "completion_date"})


def _parse_datetime(value: Any):
    # Forms send "" for an empty date input
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _form_to_record(form: dict, fields) -> dict:
    record = {}
    for form_key, record_key in fields:
        if form_key in form:
            value = form[form_key]
        elif record_key in form:
            value = form[record_key]
        else:
            continue
        if record_key in _DATE_FIELDS:
            value = _parse_datetime(value)
        record[record_key] = value
    return record


def _enum_value(value):
    return getattr(value, "value", value)


def part_form_to_record(form: dict) -> dict:
    """Map supplied form fields to part columns; absent fields stay absent."""
    return _form_to_record(form, PART_FIELDS)


def part_record_to_form(record) -> dict:
    """Render a Part row in the form's camelCase shape."""
    form = {
        "id": record.id,
        "workOrderId": record.work_order_id,
        "createdAt": record.created_at,
        "updatedAt": record.updated_at,
    }
    for form_key, record_key in PART_FIELDS:
        form[form_key] = _enum_value(getattr(record, record_key))
    return form


def job_line_form_to_record(form: dict) -> dict:
    """Map supplied job line form fields to columns."""
    return _form_to_record(form, JOB_LINE_FIELDS)


def job_line_record_to_form(record) -> dict:
    form = {
        "id": record.id,
        "workOrderId": record.work_order_id,
        "createdAt": record.created_at,
        "updatedAt": record.updated_at,
    }
    for form_key, record_key in JOB_LINE_FIELDS:
        form[form_key] = _enum_value(getattr(record, record_key))
    return form
