"""HTTP courier status source: reads a shipment's tracking log from a JSON endpoint.

Expected response for ``GET {base_url}/track/{tracking_number}``::

    {"events": [{"timestamp": "2024-07-28T09:15:00+05:00", "status": "Out for Delivery", "id": "..."}]}

``id`` is optional; it is derived from timestamp and status when absent.
"""

from datetime import datetime

import httpx
import structlog

from fulfillment.carrier.port import CourierSourceError, CourierStatusSource, next_in_sequence
from ordering.order.order import CourierStatusEvent

logger = structlog.get_logger(__name__)


class HttpCourierSource(CourierStatusSource):
    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def fetch_events(self, tracking_number: str) -> list[CourierStatusEvent]:
        try:
            response = self.client.get(f"{self.base_url}/track/{tracking_number}")
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Courier feed request failed", tracking_number=tracking_number, error=str(exc))
            raise CourierSourceError({"courier": [str(exc)]}) from exc

        events = []
        for raw in payload.get("events", []):
            try:
                events.append(
                    CourierStatusEvent.create(
                        timestamp=datetime.fromisoformat(raw["timestamp"]),
                        status_text=raw["status"],
                        event_id=raw.get("id"),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise CourierSourceError({"courier": [f"Malformed tracking event: {raw!r}"]}) from exc
        return events

    def next_event(self, tracking_number: str, last_seen_event_id: str | None = None) -> CourierStatusEvent | None:
        return next_in_sequence(self.fetch_events(tracking_number), last_seen_event_id)

    def close(self) -> None:
        self.client.close()
