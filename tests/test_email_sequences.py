"""
Email sequences — step positions, enrollment lifecycle, send scheduling and
the processing schedule setting.

Run:
    pytest tests/test_email_sequences.py -v --tb=short
"""

import json
from datetime import datetime
from types import SimpleNamespace

import httpx
import pydantic
import pytest

from core.base import EnrollmentStatus
from core.errors import NotFoundError, ValidationError
from modules.email_marketing import settings_store
from modules.email_marketing.functions import EmailFunctionClient
from modules.email_marketing.schemas import ProcessingSchedule
from modules.email_marketing.sequences import SequenceService, add_business_days, step_due_at

# A Friday
FRIDAY_9AM = datetime(2024, 3, 1, 9, 0)


@pytest.fixture()
def service(db, bus):
    return SequenceService(db, bus=bus)


@pytest.fixture()
def sequence(service):
    return service.create(
        {"name": "Service Reminder", "trigger_type": "manual"},
        [
            {"name": "Thanks", "subject": "Thanks for visiting", "delay_hours": 24},
            {"name": "Check-in", "subject": "How is it running?", "delay_hours": 72},
            {"name": "Reminder", "subject": "Time for service", "delay_hours": 48},
        ],
    )


def _positions(service, sequence_id):
    return [(step.name, step.position) for step in service.steps(sequence_id)]


class TestScheduling:
    def test_business_days_skip_weekend(self):
        assert add_business_days(FRIDAY_9AM, 1) == datetime(2024, 3, 4, 9, 0)
        assert add_business_days(FRIDAY_9AM, 5) == datetime(2024, 3, 8, 9, 0)
        assert add_business_days(FRIDAY_9AM, 0) == FRIDAY_9AM

    def test_fixed_delay(self):
        step = SimpleNamespace(delay_hours=30, delay_type="fixed")
        assert step_due_at(step, FRIDAY_9AM) == datetime(2024, 3, 2, 15, 0)

    def test_business_day_delay_rounds_up(self):
        step = SimpleNamespace(delay_hours=30, delay_type="business_days")
        # 30h -> 2 business days from Friday -> Tuesday
        assert step_due_at(step, FRIDAY_9AM) == datetime(2024, 3, 5, 9, 0)


class TestSequences:
    def test_event_trigger_needs_event(self, service):
        with pytest.raises(ValidationError) as exc:
            service.create({"name": "On visit", "trigger_type": "event"})
        assert "trigger_event" in exc.value.details

    def test_update_checks_trigger(self, service, sequence):
        with pytest.raises(ValidationError):
            service.update(sequence.id, {"trigger_type": "event"})
        updated = service.update(sequence.id, {"trigger_type": "event", "trigger_event": "service_complete"})
        assert updated.trigger_event == "service_complete"

    def test_active_only(self, service, sequence):
        service.create({"name": "Archived", "is_active": False})
        assert [s.name for s in service.list_sequences(active_only=True)] == ["Service Reminder"]
        assert len(service.list_sequences()) == 2

    def test_delete_cascades(self, db, service, sequence, customer):
        service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        service.delete(sequence.id)
        assert service.steps(sequence.id) == []
        assert service.enrollments(sequence.id) == []


class TestSteps:
    def test_created_positions(self, service, sequence):
        assert _positions(service, sequence.id) == [("Thanks", 1), ("Check-in", 2), ("Reminder", 3)]

    def test_add_appends(self, service, sequence):
        step = service.add_step(sequence.id, {"name": "Last call"})
        assert step.position == 4
        assert step.delay_hours == 24
        assert step.delay_type == "fixed"

    def test_delete_renumbers(self, service, sequence):
        middle = service.steps(sequence.id)[1]
        service.delete_step(middle.id)
        assert _positions(service, sequence.id) == [("Thanks", 1), ("Reminder", 2)]

    def test_reorder(self, service, sequence):
        a, b, c = [step.id for step in service.steps(sequence.id)]
        service.reorder_steps(sequence.id, [c, a, b])
        assert _positions(service, sequence.id) == [("Reminder", 1), ("Thanks", 2), ("Check-in", 3)]

    @pytest.mark.parametrize("pick", ["missing", "duplicate", "foreign"])
    def test_reorder_needs_exact_set(self, service, sequence, pick):
        a, b, c = [step.id for step in service.steps(sequence.id)]
        ids = {"missing": [a, b], "duplicate": [a, b, c, c], "foreign": [a, b, c + 100]}[pick]
        with pytest.raises(ValidationError):
            service.reorder_steps(sequence.id, ids)
        assert _positions(service, sequence.id) == [("Thanks", 1), ("Check-in", 2), ("Reminder", 3)]

    def test_update_keeps_position(self, service, sequence):
        step = service.steps(sequence.id)[0]
        updated = service.update_step(step.id, {"position": 9, "subject": "Thank you!"})
        assert updated.position == 1
        assert updated.subject == "Thank you!"


class TestEnrollments:
    def test_enroll_schedules_first_step(self, service, sequence, customer):
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        assert enrollment.status == EnrollmentStatus.ACTIVE
        assert enrollment.current_step == 1
        assert enrollment.next_send_at == datetime(2024, 3, 2, 9, 0)

    def test_enroll_skips_inactive_first_step(self, service, sequence, customer):
        first = service.steps(sequence.id)[0]
        service.update_step(first.id, {"is_active": False})
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        assert enrollment.next_send_at == datetime(2024, 3, 4, 9, 0)

    def test_business_day_step(self, service, customer):
        seq = service.create({"name": "Weekdays"},
                             [{"name": "One", "delay_hours": 24, "delay_type": "business_days"}])
        enrollment = service.enroll(seq.id, customer.id, now=FRIDAY_9AM)
        assert enrollment.next_send_at == datetime(2024, 3, 4, 9, 0)

    def test_no_steps_means_nothing_due(self, service, customer):
        seq = service.create({"name": "Empty"})
        assert service.enroll(seq.id, customer.id, now=FRIDAY_9AM).next_send_at is None

    def test_double_enroll_rejected(self, service, sequence, customer):
        service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        with pytest.raises(ValidationError):
            service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)

    def test_paused_enrollment_cannot_reenroll(self, service, sequence, customer):
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        service.pause(enrollment.id)
        with pytest.raises(ValidationError):
            service.enroll(sequence.id, customer.id)

    def test_cancelled_enrollment_restarts(self, service, sequence, customer):
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        service.cancel(enrollment.id)
        again = service.enroll(sequence.id, customer.id, now=datetime(2024, 4, 1, 8, 0))
        assert again.id == enrollment.id
        assert again.status == EnrollmentStatus.ACTIVE
        assert again.current_step == 1
        assert again.next_send_at == datetime(2024, 4, 2, 8, 0)
        assert len(service.enrollments(sequence.id)) == 1

    def test_inactive_sequence(self, service, customer):
        seq = service.create({"name": "Off", "is_active": False})
        with pytest.raises(ValidationError):
            service.enroll(seq.id, customer.id)

    def test_unknown_customer(self, service, sequence):
        with pytest.raises(NotFoundError):
            service.enroll(sequence.id, 8080)

    def test_pause_resume_cancel(self, service, sequence, customer):
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        paused = service.pause(enrollment.id)
        assert paused.status == EnrollmentStatus.PAUSED
        assert paused.next_send_at is None

        resumed = service.resume(enrollment.id, now=datetime(2024, 3, 11, 10, 0))
        assert resumed.status == EnrollmentStatus.ACTIVE
        assert resumed.next_send_at == datetime(2024, 3, 12, 10, 0)

        cancelled = service.cancel(enrollment.id)
        assert cancelled.status == EnrollmentStatus.CANCELLED
        with pytest.raises(ValidationError):
            service.resume(enrollment.id)

    def test_resume_needs_paused(self, service, sequence, customer):
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        with pytest.raises(ValidationError):
            service.resume(enrollment.id)

    def test_status_filter(self, service, sequence, customer, db):
        from modules.customers.models import Customer
        other = Customer(first_name="Sam", last_name="Ortiz")
        db.add(other)
        db.commit()
        service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        second = service.enroll(sequence.id, other.id, now=FRIDAY_9AM)
        service.pause(second.id)
        paused = service.enrollments(sequence.id, status=EnrollmentStatus.PAUSED)
        assert [e.customer_id for e in paused] == [other.id]


class TestProcessing:
    def _client(self, calls):
        def handler(request):
            calls.append(json.loads(request.content))
            return httpx.Response(200, json={"processed": 1})
        return EmailFunctionClient("https://functions.test", transport=httpx.MockTransport(handler))

    def test_process_sequence(self, service, sequence, events):
        calls = []
        assert service.process(self._client(calls), sequence_id=sequence.id, force=True) == {"processed": 1}
        assert calls == [{"action": "process", "sequenceId": sequence.id, "force": True}]
        assert events[-1].event_type == "email.sequence_processed"
        assert events[-1].data == {"sequence_id": sequence.id, "enrollment_id": None}

    def test_process_enrollment(self, service, sequence, customer, events):
        enrollment = service.enroll(sequence.id, customer.id, now=FRIDAY_9AM)
        calls = []
        service.process_enrollment(self._client(calls), enrollment.id)
        assert calls == [{"action": "process_enrollment", "enrollmentId": enrollment.id}]
        assert events[-1].data == {"sequence_id": sequence.id, "enrollment_id": enrollment.id}

    def test_unknown_sequence_not_sent(self, service):
        calls = []
        with pytest.raises(NotFoundError):
            service.process(self._client(calls), sequence_id=999)
        assert calls == []


class TestProcessingSchedule:
    def test_default_when_unset(self, db):
        schedule = settings_store.get_processing_schedule(db)
        assert schedule.enabled is False
        assert schedule.cron == "0 * * * *"
        assert schedule.sequence_ids == []

    def test_save_and_overwrite(self, db):
        settings_store.save_processing_schedule(db, ProcessingSchedule(enabled=True, cron="*/15 * * * *"))
        settings_store.save_processing_schedule(
            db, ProcessingSchedule(enabled=True, cron="0  6 * * 1-5", sequence_ids=[3])
        )
        schedule = settings_store.get_processing_schedule(db)
        assert schedule.cron == "0 6 * * 1-5"
        assert schedule.sequence_ids == [3]

    @pytest.mark.parametrize("cron", ["* * * *", "0 * * * * *", ""])
    def test_cron_needs_five_fields(self, cron):
        with pytest.raises(pydantic.ValidationError):
            ProcessingSchedule(cron=cron)

    def test_routes(self, client, viewer, operator, admin):
        body = {"enabled": True, "cron": "30 2 * * *", "sequenceIds": [1]}
        assert client.put("/api/email/settings/processing-schedule", json=body, headers=operator).status_code == 403
        r = client.put("/api/email/settings/processing-schedule", json=body, headers=admin)
        assert r.status_code == 200
        r = client.get("/api/email/settings/processing-schedule", headers=viewer)
        assert r.json()["cron"] == "30 2 * * *"
        assert r.json()["sequence_ids"] == [1]


class TestRoutes:
    def test_sequence_lifecycle(self, client, operator, viewer, customer):
        r = client.post("/api/email/sequences",
                        json={"name": "Welcome", "steps": [{"subject": "Hi"}, {"subject": "Still there?"}]},
                        headers=operator)
        assert r.status_code == 201, r.text
        seq = r.json()
        assert [s["position"] for s in seq["steps"]] == [1, 2]

        first, second = [s["id"] for s in seq["steps"]]
        r = client.patch(f"/api/email/sequences/{seq['id']}/steps/reorder",
                         json={"ordered_ids": [second, first]}, headers=operator)
        assert [s["id"] for s in r.json()] == [second, first]

        r = client.post(f"/api/email/sequences/{seq['id']}/enrollments",
                        json={"customer_id": customer.id}, headers=operator)
        assert r.status_code == 201, r.text
        enrollment_id = r.json()["id"]
        r = client.post(f"/api/email/enrollments/{enrollment_id}/pause", headers=operator)
        assert r.json()["status"] == "paused"
        listed = client.get(f"/api/email/sequences/{seq['id']}/enrollments", headers=viewer).json()
        assert [e["status"] for e in listed] == ["paused"]
