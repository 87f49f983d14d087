"""Courier status source port: abstract interface for courier tracking feeds.

The reconciler programs against the port; adapters are swapped via the
``courier_adapter`` setting.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from protean.exceptions import ProteanException

from ordering.order.order import BOOTSTRAP_EVENT_ID, CourierStatusEvent


class CourierSourceError(ProteanException):
    """The courier feed could not be reached or returned garbage."""


class CourierStatusSource(ABC):
    """Abstract interface for courier status adapters."""

    @abstractmethod
    def next_event(self, tracking_number: str, last_seen_event_id: str | None = None) -> CourierStatusEvent | None:
        """Return the event that follows ``last_seen_event_id`` for a shipment.

        ``None`` as last seen id means "from the start". The bootstrap id
        (``booked``) means "after the booking".

        Returns:
            The successor event, or None when there is nothing newer or the
            last seen id is unknown to the courier.

        Raises:
            CourierSourceError: if the feed is unavailable.
        """
        ...


def next_in_sequence(events: Sequence[CourierStatusEvent], last_seen_event_id: str | None) -> CourierStatusEvent | None:
    """Successor lookup shared by adapters that fetch a shipment's full log."""
    if last_seen_event_id is None:
        return events[0] if events else None

    if last_seen_event_id == BOOTSTRAP_EVENT_ID:
        for event in events:
            if "booked" not in event.status_text.lower():
                return event
        return None

    for index, event in enumerate(events):
        if event.event_id == last_seen_event_id:
            return events[index + 1] if index + 1 < len(events) else None
    return None
