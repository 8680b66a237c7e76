"""
modules/email_marketing/ab_testing.py — A/B test configuration for campaigns.

A test is a plain dict stored in EmailCampaign.ab_test:

    {
        "enabled": True,
        "winner_criteria": "open_rate" | "click_rate",
        "winner_id": None,
        "winner_selection_date": None,
        "variants": [
            {"id", "name", "subject", "content", "recipient_percentage",
             "recipients", "opened", "clicked"},
            ...
        ],
    }

Recipient percentages always total 100 across 2 to 5 variants. Every
function returns new dicts and leaves its arguments untouched.
"""

import copy
import math
import uuid
from datetime import datetime, timezone
from typing import Optional

from core.errors import ValidationError

MIN_VARIANTS = 2
MAX_VARIANTS = 5
WINNER_CRITERIA = ("open_rate", "click_rate")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _variant_name(index: int) -> str:
    return f"Variant {chr(65 + index)}"


def new_variant(index: int, subject: str = "", content: str = "") -> dict:
    return {
        "id": f"variant-{uuid.uuid4().hex[:12]}",
        "name": _variant_name(index),
        "subject": subject,
        "content": content,
        "recipient_percentage": 0,
        "recipients": 0,
        "opened": 0,
        "clicked": 0,
    }


def equalize_percentages(variants: list[dict]) -> list[dict]:
    """Even split; the first variant takes the remainder."""
    variants = copy.deepcopy(variants)
    if not variants:
        return variants
    share = 100 // len(variants)
    remainder = 100 - share * len(variants)
    for i, variant in enumerate(variants):
        variant["recipient_percentage"] = share + (remainder if i == 0 else 0)
    return variants


def default_test(subject: str = "", content: str = "") -> dict:
    variants = [new_variant(0, subject, content), new_variant(1, subject, content)]
    return {
        "enabled": True,
        "winner_criteria": "open_rate",
        "winner_id": None,
        "winner_selection_date": None,
        "variants": equalize_percentages(variants),
    }


def rebalance_percentages(variants: list[dict], index: int, value: int) -> list[dict]:
    """Set one variant's share and spread the rest over the others.

    The others keep their relative proportions (rounded half up); the last
    variant other than index absorbs the rounding so the total is 100.
    """
    if not 0 <= index < len(variants):
        raise ValidationError("Variant index out of range", details={"index": str(index)})
    value = max(0, min(100, int(value)))
    variants = copy.deepcopy(variants)
    variants[index]["recipient_percentage"] = value
    if len(variants) < 2:
        return variants

    others = [i for i in range(len(variants)) if i != index]
    remaining = 100 - value
    old_total = sum(variants[i]["recipient_percentage"] for i in others) or 1
    for i in others:
        share = variants[i]["recipient_percentage"] / old_total * remaining
        variants[i]["recipient_percentage"] = _round_half_up(share)

    adjustment = 100 - sum(v["recipient_percentage"] for v in variants)
    # Rounding can push the last variant below zero; walk back to one that can absorb it
    for i in reversed(others):
        if variants[i]["recipient_percentage"] + adjustment >= 0:
            variants[i]["recipient_percentage"] += adjustment
            break
    return variants


def add_variant(test: dict, subject: Optional[str] = None, content: Optional[str] = None) -> dict:
    test = copy.deepcopy(test)
    variants = test.get("variants", [])
    if len(variants) >= MAX_VARIANTS:
        raise ValidationError(f"An A/B test has at most {MAX_VARIANTS} variants",
                              details={"variants": "limit reached"})
    base = variants[0] if variants else {}
    variants.append(new_variant(
        len(variants),
        subject if subject is not None else base.get("subject", ""),
        content if content is not None else base.get("content", ""),
    ))
    test["variants"] = equalize_percentages(variants)
    return test


def duplicate_variant(test: dict, variant_id: str) -> dict:
    test = copy.deepcopy(test)
    variants = test.get("variants", [])
    if len(variants) >= MAX_VARIANTS:
        raise ValidationError(f"An A/B test has at most {MAX_VARIANTS} variants",
                              details={"variants": "limit reached"})
    source = _find(variants, variant_id)
    clone = dict(source, id=f"variant-{uuid.uuid4().hex[:12]}", name=f"{source['name']} (Copy)")
    variants.append(clone)
    test["variants"] = equalize_percentages(variants)
    return test


def remove_variant(test: dict, variant_id: str) -> dict:
    test = copy.deepcopy(test)
    variants = test.get("variants", [])
    if len(variants) <= MIN_VARIANTS:
        raise ValidationError(f"An A/B test needs at least {MIN_VARIANTS} variants",
                              details={"variants": "minimum reached"})
    _find(variants, variant_id)
    test["variants"] = equalize_percentages([v for v in variants if v["id"] != variant_id])
    return test


def _find(variants: list[dict], variant_id: str) -> dict:
    for variant in variants:
        if variant["id"] == variant_id:
            return variant
    raise ValidationError(f"Unknown variant {variant_id!r}", details={"variant_id": "not in this test"})


def validate_test(test: dict) -> None:
    errors = {}
    variants = test.get("variants") or []
    if not MIN_VARIANTS <= len(variants) <= MAX_VARIANTS:
        errors["variants"] = f"must have {MIN_VARIANTS} to {MAX_VARIANTS} variants"
    elif sum(v.get("recipient_percentage", 0) for v in variants) != 100:
        errors["variants"] = "recipient percentages must total 100"
    if test.get("winner_criteria", "open_rate") not in WINNER_CRITERIA:
        errors["winner_criteria"] = f"must be one of {', '.join(WINNER_CRITERIA)}"
    if errors:
        raise ValidationError("Invalid A/B test", details=errors)


def variant_rate(variant: dict, criteria: str) -> float:
    """Opens or clicks per recipient; 0 when nobody received the variant."""
    recipients = variant.get("recipients") or 0
    if recipients <= 0:
        return 0.0
    count = variant.get("opened" if criteria == "open_rate" else "clicked") or 0
    return count / recipients


def select_winner(test: dict) -> dict:
    """Variant with the best rate for the test's criteria; ties go to the earliest."""
    variants = test.get("variants") or []
    if not variants:
        raise ValidationError("A/B test has no variants", details={"variants": "empty"})
    criteria = test.get("winner_criteria") or "open_rate"
    if criteria not in WINNER_CRITERIA:
        raise ValidationError("Invalid winner criteria",
                              details={"winner_criteria": f"must be one of {', '.join(WINNER_CRITERIA)}"})
    best = variants[0]
    best_rate = variant_rate(best, criteria)
    for variant in variants[1:]:
        rate = variant_rate(variant, criteria)
        if rate > best_rate:
            best, best_rate = variant, rate
    return best


def apply_winner(test: dict, now: Optional[datetime] = None) -> dict:
    """Return the test with winner_id and winner_selection_date recorded."""
    test = copy.deepcopy(test)
    winner = select_winner(test)
    test["winner_id"] = winner["id"]
    test["winner_selection_date"] = (now or datetime.now(timezone.utc)).isoformat()
    return test
