import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from laundry.utils.timeutils import utcnow

logger = logging.getLogger("laundry.events")


@dataclass(frozen=True)
class OrderChanged:
    """Invalidation hint: listeners re-read the order before acting on it."""
    order_id: int
    status: str
    occurred_at: datetime = field(default_factory=utcnow)


Subscriber = Callable[[OrderChanged], None]


class OrderEventBus:
    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: OrderChanged) -> None:
        # delivery is best effort, the order row stays the source of truth
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("order event subscriber failed for order %s", event.order_id)


order_events = OrderEventBus()
