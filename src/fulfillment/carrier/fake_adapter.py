"""Fake courier status source: scripted tracking logs for testing and development.

Each tracking number maps to an ordered list of events; ``next_event``
walks that list. Configurable failure behavior for integration testing.
"""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from fulfillment.carrier.port import CourierSourceError, CourierStatusSource, next_in_sequence
from ordering.order.order import CourierStatusEvent


def _event(timestamp: str, status_text: str) -> CourierStatusEvent:
    return CourierStatusEvent.create(
        timestamp=datetime.strptime(timestamp, "%d-%m-%Y %H:%M").replace(tzinfo=UTC),
        status_text=status_text,
    )


DEMO_SEQUENCES: dict[str, list[CourierStatusEvent]] = {
    "TCS123456789": [
        _event("28-07-2024 09:15", "Out for Delivery from Lahore Station"),
        _event("28-07-2024 15:30", "Delivered Successfully"),
    ],
    "TCS987654321": [
        _event("28-07-2024 14:00", "Delivered to Customer"),
    ],
    "TCSADDRNEED": [
        _event("27-07-2024 10:00", "Recipient Premises Closed"),
        _event("27-07-2024 10:05", "Delivery Attempted - Address Incomplete"),
    ],
    "TCSOLDDELIVER": [
        _event("15-07-2024 10:00", "Booked"),
        _event("16-07-2024 14:30", "Delivered Successfully"),
    ],
}


class FakeCourierSource(CourierStatusSource):
    """Courier source that replays scripted events per tracking number."""

    def __init__(self, sequences: dict[str, list[CourierStatusEvent]] | None = None):
        self.sequences: dict[str, list[CourierStatusEvent]] = {
            tracking: list(events) for tracking, events in (sequences or {}).items()
        }
        self.requests: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Courier feed unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Courier feed unavailable"):
        """Configure the fake source behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def script(self, tracking_number: str, statuses: Iterable[str | CourierStatusEvent], start: datetime | None = None):
        """Append events for a tracking number; plain strings get hourly timestamps."""
        events = self.sequences.setdefault(tracking_number, [])
        start = start or datetime(2024, 7, 27, 9, 0, tzinfo=UTC)
        for status in statuses:
            if isinstance(status, CourierStatusEvent):
                events.append(status)
                continue
            timestamp = start + timedelta(hours=len(events))
            events.append(CourierStatusEvent.create(timestamp=timestamp, status_text=status))

    def next_event(self, tracking_number: str, last_seen_event_id: str | None = None) -> CourierStatusEvent | None:
        self.requests.append({"tracking_number": tracking_number, "last_seen_event_id": last_seen_event_id})
        if not self.should_succeed:
            raise CourierSourceError({"courier": [self.failure_reason]})
        return next_in_sequence(self.sequences.get(tracking_number, []), last_seen_event_id)

    def reset(self):
        """Clear scripted events and recorded requests (useful between tests)."""
        self.sequences.clear()
        self.requests.clear()
        self.should_succeed = True
        self.failure_reason = "Courier feed unavailable"
