"""
Transaction boundary for repositories.

Every repository write goes through store_operation(), which enforces:

  - commit on success, rollback on any failure
  - SQLAlchemy errors logged with context and re-raised as StoreError
  - ShopError subclasses (validation, not found) pass through untouched

Usage:
    from core.db_utils import store_operation

    with store_operation(db, "update job line", entity="job_line", entity_id=7):
        line.status = JobLineStatus.COMPLETED
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import ShopError, StoreError

log = logging.getLogger("shop.repo")


@contextmanager
def store_operation(db: Session, action: str, entity: str = "", entity_id=None):
    """Run the block as one transaction.

    Args:
        action: Human phrase used in the error message ("create part").
        entity / entity_id: Logged for context only.
    """
    try:
        yield db
        db.commit()
    except ShopError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Failed to {action} ({entity} {entity_id}): {e}")
        raise StoreError(f"Failed to {action}: {e}") from e
