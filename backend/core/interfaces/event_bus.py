# core/interfaces/event_bus.py — change-feed contract
#
# Repositories publish after a successful commit; subscribers such as the
# /ws relay never see a rolled-back write.
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

WILDCARD = "*"


@dataclass
class Event:
    event_type: str     # "work_order.updated", "job_line.changed", ...
    source_module: str  # MODULE_ID of the publisher
    data: dict = field(default_factory=dict)


Handler = Callable[[Event], Any]


class EventBus(ABC):
    """Pub/sub between modules.

    A subscription is one of:
      - an exact event type   ("part.changed")
      - a family pattern      ("work_order.*", matches "work_order.<anything>")
      - the wildcard          ("*")
    """

    @abstractmethod
    def publish(self, event: Event) -> None: ...

    @abstractmethod
    def subscribe(self, event_type: str, handler: Handler) -> None: ...

    @abstractmethod
    def unsubscribe(self, event_type: str, handler: Handler) -> None: ...
