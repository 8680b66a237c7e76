"""
modules/email_marketing/sequences.py — Sequence service: sequences, steps and
enrollments.

Step positions over a sequence are kept as 1..N: appends go to the end,
deletes and reorders renumber. An enrollment's current_step is the position
of the next step to send and next_send_at is when that step is due.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from core.base import EnrollmentStatus
from core.db_utils import store_operation
from core.errors import NotFoundError, ValidationError
from core.event_bus import get_event_bus, publish
from core.events import SEQUENCE_PROCESSED
from modules.customers.models import Customer
from modules.email_marketing.functions import EmailFunctionClient
from modules.email_marketing.models import (
    EmailSequence, EmailSequenceEnrollment, EmailSequenceStep,
)

log = logging.getLogger("shop.email")


def add_business_days(start: datetime, days: int) -> datetime:
    """start + days weekdays (Mon-Fri), keeping the time of day."""
    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            added += 1
    return current


def step_due_at(step: EmailSequenceStep, start: datetime) -> datetime:
    """When a step is due, counting its delay from start.

    business_days delays count whole days (delay_hours / 24, rounded up) and
    skip weekends.
    """
    hours = step.delay_hours or 0
    if step.delay_type == "business_days":
        return add_business_days(start, -(-hours // 24))
    return start + timedelta(hours=hours)


class SequenceService:

    def __init__(self, db: Session, bus=None):
        self.db = db
        self.bus = bus or get_event_bus()

    # -------------- Sequences --------------

    def list_sequences(self, active_only: bool = False) -> List[EmailSequence]:
        query = self.db.query(EmailSequence)
        if active_only:
            query = query.filter(EmailSequence.is_active.is_(True))
        return query.order_by(EmailSequence.name).all()

    def get(self, sequence_id: int) -> EmailSequence:
        sequence = self.db.query(EmailSequence).filter(EmailSequence.id == sequence_id).first()
        if not sequence:
            raise NotFoundError("Sequence", sequence_id)
        return sequence

    @staticmethod
    def _check_trigger(trigger_type: Optional[str], trigger_event: Optional[str]) -> None:
        if trigger_type == "event" and not trigger_event:
            raise ValidationError("Event-triggered sequences need a trigger event",
                                  details={"trigger_event": "required when trigger_type is event"})

    def create(self, values: dict, steps: Optional[List[dict]] = None) -> EmailSequence:
        """Insert a sequence and its steps (positions 1..N) in one transaction."""
        self._check_trigger(values.get("trigger_type"), values.get("trigger_event"))
        sequence = EmailSequence(**values)
        with store_operation(self.db, "create sequence", "sequence", None):
            self.db.add(sequence)
            self.db.flush()
            for position, step_values in enumerate(steps or [], start=1):
                self.db.add(EmailSequenceStep(sequence_id=sequence.id, position=position, **step_values))
        self.db.refresh(sequence)
        log.info(f"Created sequence {sequence.id} ({sequence.name}) with {len(steps or [])} steps")
        return sequence

    def update(self, sequence_id: int, values: dict) -> EmailSequence:
        sequence = self.get(sequence_id)
        self._check_trigger(
            values.get("trigger_type", sequence.trigger_type),
            values.get("trigger_event", sequence.trigger_event),
        )
        with store_operation(self.db, "update sequence", "sequence", sequence_id):
            for key, value in values.items():
                setattr(sequence, key, value)
        self.db.refresh(sequence)
        return sequence

    def delete(self, sequence_id: int) -> None:
        """Delete a sequence with its steps and enrollments."""
        sequence = self.get(sequence_id)
        with store_operation(self.db, "delete sequence", "sequence", sequence_id):
            self.db.delete(sequence)
        log.info(f"Deleted sequence {sequence_id}")

    # -------------- Steps --------------

    def steps(self, sequence_id: int) -> List[EmailSequenceStep]:
        return (
            self.db.query(EmailSequenceStep)
            .filter(EmailSequenceStep.sequence_id == sequence_id)
            .order_by(EmailSequenceStep.position, EmailSequenceStep.id)
            .all()
        )

    def get_step(self, step_id: int) -> EmailSequenceStep:
        step = self.db.query(EmailSequenceStep).filter(EmailSequenceStep.id == step_id).first()
        if not step:
            raise NotFoundError("Sequence step", step_id)
        return step

    def add_step(self, sequence_id: int, values: dict) -> EmailSequenceStep:
        self.get(sequence_id)
        position = len(self.steps(sequence_id)) + 1
        step = EmailSequenceStep(sequence_id=sequence_id, position=position, **values)
        with store_operation(self.db, "add sequence step", "sequence", sequence_id):
            self.db.add(step)
        self.db.refresh(step)
        return step

    def update_step(self, step_id: int, values: dict) -> EmailSequenceStep:
        step = self.get_step(step_id)
        values = {k: v for k, v in values.items() if k not in ("id", "sequence_id", "position")}
        with store_operation(self.db, "update sequence step", "sequence_step", step_id):
            for key, value in values.items():
                setattr(step, key, value)
        self.db.refresh(step)
        return step

    def delete_step(self, step_id: int) -> None:
        step = self.get_step(step_id)
        sequence_id = step.sequence_id
        with store_operation(self.db, "delete sequence step", "sequence_step", step_id):
            self.db.delete(step)
            self.db.flush()
            for position, remaining in enumerate(self.steps(sequence_id), start=1):
                remaining.position = position

    def reorder_steps(self, sequence_id: int, ordered_ids: List[int]) -> List[EmailSequenceStep]:
        """Set position = index (1-based); ordered_ids must list every step once."""
        self.get(sequence_id)
        steps = {step.id: step for step in self.steps(sequence_id)}
        ids = [int(i) for i in ordered_ids]
        if len(ids) != len(set(ids)) or set(ids) != set(steps):
            raise ValidationError(
                "Reorder must list every step of the sequence exactly once",
                details={"ordered_ids": f"expected {sorted(steps)}"},
            )
        with store_operation(self.db, "reorder sequence steps", "sequence", sequence_id):
            for position, step_id in enumerate(ids, start=1):
                steps[step_id].position = position
        return self.steps(sequence_id)

    # -------------- Enrollments --------------

    def enrollments(self, sequence_id: int, status: Optional[str] = None) -> List[EmailSequenceEnrollment]:
        query = self.db.query(EmailSequenceEnrollment).filter(
            EmailSequenceEnrollment.sequence_id == sequence_id
        )
        if status:
            query = query.filter(EmailSequenceEnrollment.status == status)
        return query.order_by(EmailSequenceEnrollment.id).all()

    def get_enrollment(self, enrollment_id: int) -> EmailSequenceEnrollment:
        enrollment = (
            self.db.query(EmailSequenceEnrollment)
            .filter(EmailSequenceEnrollment.id == enrollment_id)
            .first()
        )
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)
        return enrollment

    def _next_send_at(self, sequence_id: int, position: int, start: datetime) -> Optional[datetime]:
        active = [s for s in self.steps(sequence_id) if s.is_active and s.position >= position]
        if not active:
            return None
        return step_due_at(active[0], start)

    def enroll(self, sequence_id: int, customer_id: int,
               now: Optional[datetime] = None) -> EmailSequenceEnrollment:
        """Enroll a customer at step 1.

        A finished or cancelled enrollment is restarted; an active or paused
        one is a validation error.
        """
        sequence = self.get(sequence_id)
        if not sequence.is_active:
            raise ValidationError(f"Sequence {sequence_id} is inactive",
                                  details={"sequence_id": "inactive"})
        if not self.db.query(Customer).filter(Customer.id == customer_id).first():
            raise NotFoundError("Customer", customer_id)

        now = now or datetime.now(timezone.utc)
        enrollment = (
            self.db.query(EmailSequenceEnrollment)
            .filter(EmailSequenceEnrollment.sequence_id == sequence_id,
                    EmailSequenceEnrollment.customer_id == customer_id)
            .first()
        )
        if enrollment and enrollment.status in (EnrollmentStatus.ACTIVE, EnrollmentStatus.PAUSED):
            raise ValidationError(
                f"Customer {customer_id} is already enrolled in sequence {sequence_id}",
                details={"customer_id": "already enrolled"},
            )

        with store_operation(self.db, "enroll customer", "sequence", sequence_id):
            if enrollment is None:
                enrollment = EmailSequenceEnrollment(sequence_id=sequence_id, customer_id=customer_id)
                self.db.add(enrollment)
            enrollment.status = EnrollmentStatus.ACTIVE
            enrollment.current_step = 1
            enrollment.enrolled_at = now
            enrollment.completed_at = None
            enrollment.last_sent_at = None
            enrollment.next_send_at = self._next_send_at(sequence_id, 1, now)
        self.db.refresh(enrollment)
        log.info(f"Enrolled customer {customer_id} in sequence {sequence_id}")
        return enrollment

    def _set_status(self, enrollment: EmailSequenceEnrollment, status: EnrollmentStatus,
                    allowed_from: tuple, now: Optional[datetime] = None) -> EmailSequenceEnrollment:
        if enrollment.status not in allowed_from:
            raise ValidationError(
                f"Cannot move enrollment {enrollment.id} from {enrollment.status.value} to {status.value}",
                details={"status": enrollment.status.value},
            )
        with store_operation(self.db, f"set enrollment {status.value}", "enrollment", enrollment.id):
            enrollment.status = status
            if status == EnrollmentStatus.PAUSED or status == EnrollmentStatus.CANCELLED:
                enrollment.next_send_at = None
            elif status == EnrollmentStatus.ACTIVE:
                enrollment.next_send_at = self._next_send_at(
                    enrollment.sequence_id, enrollment.current_step, now or datetime.now(timezone.utc)
                )
        self.db.refresh(enrollment)
        return enrollment

    def pause(self, enrollment_id: int) -> EmailSequenceEnrollment:
        return self._set_status(self.get_enrollment(enrollment_id), EnrollmentStatus.PAUSED,
                                (EnrollmentStatus.ACTIVE,))

    def resume(self, enrollment_id: int, now: Optional[datetime] = None) -> EmailSequenceEnrollment:
        """Reactivate; the current step's delay restarts from now."""
        return self._set_status(self.get_enrollment(enrollment_id), EnrollmentStatus.ACTIVE,
                                (EnrollmentStatus.PAUSED,), now)

    def cancel(self, enrollment_id: int) -> EmailSequenceEnrollment:
        return self._set_status(self.get_enrollment(enrollment_id), EnrollmentStatus.CANCELLED,
                                (EnrollmentStatus.ACTIVE, EnrollmentStatus.PAUSED))

    # -------------- Processing --------------

    def process(self, client: EmailFunctionClient, sequence_id: Optional[int] = None,
                customer_id: Optional[int] = None, force: bool = False) -> dict:
        if sequence_id is not None:
            self.get(sequence_id)
        result = client.process(sequence_id=sequence_id, customer_id=customer_id, force=force)
        publish(self.bus, SEQUENCE_PROCESSED, "email_marketing",
                sequence_id=sequence_id, enrollment_id=None)
        return result

    def process_enrollment(self, client: EmailFunctionClient, enrollment_id: int,
                           force: bool = False) -> dict:
        enrollment = self.get_enrollment(enrollment_id)
        result = client.process_enrollment(enrollment_id, force=force)
        publish(self.bus, SEQUENCE_PROCESSED, "email_marketing",
                sequence_id=enrollment.sequence_id, enrollment_id=enrollment_id)
        return result
