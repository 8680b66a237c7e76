"""
Contract tests — InMemoryEventBus as the shop's change feed.

Repositories publish work_order.* / job_line.* / part.* events after commit;
the /ws relay listens on "*" and editors listen on one family. These tests pin
down the three subscription kinds, their dispatch order and handler isolation.

Run: pytest tests/test_contracts/test_event_bus.py -v
"""

import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.interfaces.event_bus import WILDCARD, Event  # noqa: E402
from core.event_bus import InMemoryEventBus, get_event_bus, publish  # noqa: E402


@pytest.fixture()
def bus():
    return InMemoryEventBus()


def _event(event_type: str, **data) -> Event:
    return Event(event_type=event_type, source_module="work_orders", data=data)


class TestSubscriptionKinds:
    def test_exact_type_only(self, bus):
        received = []
        bus.subscribe("part.changed", received.append)
        bus.publish(_event("part.changed", part_id=1))
        bus.publish(_event("job_line.changed", job_line_id=1))
        assert [e.event_type for e in received] == ["part.changed"]

    def test_family_pattern(self, bus):
        received = []
        bus.subscribe("work_order.*", received.append)
        for event_type in ("work_order.created", "work_order.updated", "part.changed"):
            bus.publish(_event(event_type))
        assert [e.event_type for e in received] == ["work_order.created", "work_order.updated"]

    def test_family_pattern_needs_the_dot(self, bus):
        received = []
        bus.subscribe("work_order.*", received.append)
        bus.publish(_event("work_orders_archived"))
        assert received == []

    def test_relay_sees_everything(self, bus):
        received = []
        bus.subscribe(WILDCARD, received.append)
        bus.publish(_event("work_order.updated", work_order_id=7, fields=["parts"]))
        bus.publish(_event("email.campaign_triggered"))
        assert len(received) == 2
        assert received[0].data == {"work_order_id": 7, "fields": ["parts"]}

    def test_dispatch_order_exact_family_wildcard(self, bus):
        order = []
        bus.subscribe(WILDCARD, lambda e: order.append("wildcard"))
        bus.subscribe("work_order.*", lambda e: order.append("family"))
        bus.subscribe("work_order.updated", lambda e: order.append("exact"))
        bus.publish(_event("work_order.updated"))
        assert order == ["exact", "family", "wildcard"]

    @pytest.mark.parametrize("pattern", ["part.changed", "part.*", WILDCARD])
    def test_duplicate_subscription_ignored(self, bus, pattern):
        calls = []
        bus.subscribe(pattern, calls.append)
        bus.subscribe(pattern, calls.append)
        bus.publish(_event("part.changed"))
        assert len(calls) == 1

    @pytest.mark.parametrize("pattern", ["part.changed", "part.*", WILDCARD])
    def test_unsubscribe(self, bus, pattern):
        calls = []
        bus.subscribe(pattern, calls.append)
        bus.unsubscribe(pattern, calls.append)
        bus.unsubscribe(pattern, calls.append)
        bus.publish(_event("part.changed"))
        assert calls == []


class TestIsolation:
    def test_failing_handler_does_not_block_the_rest(self, bus):
        received = []

        def broken(event):
            raise RuntimeError("socket closed")

        bus.subscribe("job_line.changed", broken)
        bus.subscribe("job_line.changed", received.append)
        bus.subscribe(WILDCARD, broken)
        bus.subscribe(WILDCARD, received.append)
        bus.publish(_event("job_line.changed", job_line_id=3))
        assert len(received) == 2


class TestPublishHelper:
    def test_builds_event_from_keywords(self, bus):
        received = []
        bus.subscribe("part.changed", received.append)
        publish(bus, "part.changed", "work_orders", work_order_id=1, part_id=2, action="created")
        assert received[0].source_module == "work_orders"
        assert received[0].data == {"work_order_id": 1, "part_id": 2, "action": "created"}

    def test_broken_bus_does_not_raise(self):
        class BrokenBus(InMemoryEventBus):
            def publish(self, event):
                raise RuntimeError("bus down")

        publish(BrokenBus(), "work_order.updated", "work_orders", work_order_id=1)

    def test_process_bus_is_shared(self):
        assert get_event_bus() is get_event_bus()
        assert isinstance(get_event_bus(), InMemoryEventBus)
