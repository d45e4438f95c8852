"""In-process change notifications for bookings.

Listeners get a ``BookingChanged`` after the transaction that changed the
booking has committed. Publishing never fails the caller: a broken listener is
logged and skipped.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingChanged:
    booking_id: str
    status: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[BookingChanged], None]

_listeners: list[Listener] = []


def subscribe(listener: Listener) -> Listener:
    if listener not in _listeners:
        _listeners.append(listener)
    return listener


def unsubscribe(listener: Listener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def publish(event: BookingChanged) -> None:
    for listener in list(_listeners):
        try:
            listener(event)
        except Exception:
            logger.exception("booking_listener_failed", extra={"booking_id": event.booking_id, "status": event.status})
