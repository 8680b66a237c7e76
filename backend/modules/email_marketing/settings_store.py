"""
modules/email_marketing/settings_store.py — email_system_settings access.

The only key used today is processing_schedule:
{"enabled": bool, "cron": "m h dom mon dow", "sequence_ids": [int, ...]}.
Nothing in this process runs the schedule; the function host reads it.
"""

import logging

from sqlalchemy.orm import Session

from core.db_utils import store_operation
from modules.email_marketing.models import EmailSystemSetting
from modules.email_marketing.schemas import ProcessingSchedule

log = logging.getLogger("shop.email")

PROCESSING_SCHEDULE = "processing_schedule"


def get_setting(db: Session, key: str, default=None):
    row = db.query(EmailSystemSetting).filter(EmailSystemSetting.key == key).first()
    return row.value if row else default


def set_setting(db: Session, key: str, value) -> None:
    with store_operation(db, f"save setting {key}", "email_setting", key):
        row = db.query(EmailSystemSetting).filter(EmailSystemSetting.key == key).first()
        if row:
            row.value = value
        else:
            db.add(EmailSystemSetting(key=key, value=value))


def get_processing_schedule(db: Session) -> ProcessingSchedule:
    """Stored schedule, or the disabled hourly default when none is saved."""
    stored = get_setting(db, PROCESSING_SCHEDULE)
    if not stored:
        return ProcessingSchedule()
    return ProcessingSchedule.model_validate(stored)


def save_processing_schedule(db: Session, schedule: ProcessingSchedule) -> ProcessingSchedule:
    set_setting(db, PROCESSING_SCHEDULE, schedule.model_dump(mode="json"))
    log.info(f"Processing schedule saved (enabled={schedule.enabled}, cron={schedule.cron!r})")
    return schedule
