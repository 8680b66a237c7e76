# core/event_bus.py — InMemoryEventBus implementation
#
# Concrete synchronous event bus. Single-process pub/sub that keeps the
# work-order repositories unaware of who listens (realtime relay, email
# triggers, audit). Subscriptions may be exact ("part.changed"), a prefix
# pattern ("work_order.*") or the wildcard "*".

import logging
from collections import defaultdict

from core.interfaces.event_bus import WILDCARD, Event, EventBus, Handler

log = logging.getLogger("event_bus")


class InMemoryEventBus(EventBus):
    """
    Synchronous in-process event bus.

    Handlers are called in registration order: exact subscribers first, then
    prefix subscribers, then wildcards. Exceptions in one handler do not
    prevent subsequent handlers from running.
    """

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        # "work_order." -> handlers registered as "work_order.*"
        self._prefix_handlers: dict[str, list[Handler]] = defaultdict(list)
        self._wildcard_handlers: list[Handler] = []

    def _matching(self, event_type: str) -> list[Handler]:
        handlers = list(self._handlers.get(event_type, []))
        for prefix, prefixed in self._prefix_handlers.items():
            if event_type.startswith(prefix):
                handlers.extend(prefixed)
        handlers.extend(self._wildcard_handlers)
        return handlers

    def publish(self, event: Event) -> None:
        """Dispatch an event to every handler whose subscription matches."""
        for handler in self._matching(event.event_type):
            try:
                handler(event)
            except Exception as e:
                log.error(
                    f"Event handler {handler!r} raised for event "
                    f"'{event.event_type}': {e}",
                    exc_info=True,
                )

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """
        Register a handler for an event type.

        Use event_type="*" to receive all events, or "prefix.*" for a family.
        """
        if event_type == WILDCARD:
            bucket = self._wildcard_handlers
        elif event_type.endswith(".*"):
            bucket = self._prefix_handlers[event_type[:-1]]
        else:
            bucket = self._handlers[event_type]
        if handler not in bucket:
            bucket.append(handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        """Remove a previously registered handler."""
        if event_type == WILDCARD:
            bucket = self._wildcard_handlers
        elif event_type.endswith(".*"):
            bucket = self._prefix_handlers.get(event_type[:-1], [])
        else:
            bucket = self._handlers.get(event_type, [])
        try:
            bucket.remove(handler)
        except ValueError:
            pass


def publish(bus: EventBus, event_type: str, source: str, **data) -> None:
    """Publish without letting a broken subscriber fail the caller's write."""
    try:
        bus.publish(Event(event_type=event_type, source_module=source, data=data))
    except Exception:
        log.warning(f"Publishing {event_type} failed (non-blocking)", exc_info=True)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_bus: InMemoryEventBus = InMemoryEventBus()


def get_event_bus() -> InMemoryEventBus:
    """Return the application-level event bus singleton."""
    return _bus
