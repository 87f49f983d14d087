"""Courier status reconciler: fold the next courier event into an Order.

Applies only to orders with a tracking number that are not Delivered,
Cancelled or Archived. Each call appends at most one event:

    empty courier history           → synthetic "Booked" bootstrap event
    last event for another shipment → bootstrap again for the new tracking number
    otherwise                       → successor of the last recorded event, if any

Every appended event carries the tracking number it was read for.

After appending, the application status is re-derived from the new status
text (see ``classification``). A changed application status resets the
message status to Pending so a fresh notification becomes due.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from fulfillment.carrier.port import CourierStatusSource
from fulfillment.courier.classification import StatusRule, build_rules, classify
from ordering.order.order import (
    AppStatus,
    CourierStatusEvent,
    HistoryEntry,
    MessageStatus,
    Order,
    TERMINAL_STATUSES,
)

logger = structlog.get_logger(__name__)

POLLING_ACTOR = "System: Courier Polling"

# Forward order of courier-driven progress, used only to flag regressions
_PROGRESS_RANK = {
    AppStatus.PROCESSING: 0,
    AppStatus.DISPATCHED: 1,
    AppStatus.IN_TRANSIT: 2,
    AppStatus.ADDRESS_ISSUE: 3,
    AppStatus.OUT_FOR_DELIVERY: 3,
    AppStatus.DELIVERED: 4,
}


@dataclass(frozen=True)
class ReconcileResult:
    order: Order
    event: CourierStatusEvent | None = None

    @property
    def changed(self) -> bool:
        return self.event is not None


def is_trackable(order: Order) -> bool:
    return bool(order.tracking_number) and order.app_status not in TERMINAL_STATUSES


def derive_app_status(order: Order, status_text: str, rules: tuple[StatusRule, ...] | None = None) -> AppStatus:
    """Application status implied by ``status_text`` for this order."""
    classified = classify(status_text, rules)
    if classified is not None:
        return classified
    if order.app_status in (AppStatus.DISPATCHED, AppStatus.PROCESSING):
        return order.app_status
    return AppStatus.IN_TRANSIT


def reconcile(
    order: Order,
    source: CourierStatusSource,
    now: datetime | None = None,
    rules: tuple[StatusRule, ...] | None = None,
) -> ReconcileResult:
    """Advance ``order`` by at most one courier event.

    Raises:
        CourierSourceError: propagated from the source when the feed is down.
    """
    if not is_trackable(order):
        return ReconcileResult(order=order)

    now = now or datetime.now(UTC)
    last_event = order.last_courier_event

    if last_event is None:
        event = CourierStatusEvent.bootstrap(now, order.tracking_number)
    elif _from_previous_shipment(last_event, order.tracking_number):
        logger.info(
            "Tracking number changed, restarting courier sequence",
            order_id=order.id,
            previous_tracking_number=last_event.tracking_number,
            tracking_number=order.tracking_number,
        )
        event = CourierStatusEvent.bootstrap(now, order.tracking_number)
    else:
        event = source.next_event(order.tracking_number, last_event.event_id)
        if event is None:
            logger.debug(
                "No new courier event",
                order_id=order.id,
                tracking_number=order.tracking_number,
                last_event_id=last_event.event_id,
            )
            return ReconcileResult(order=order)
        if event.tracking_number is None:
            event = event.model_copy(update={"tracking_number": order.tracking_number})

    return ReconcileResult(order=apply_courier_event(order, event, now, rules), event=event)


def _from_previous_shipment(event: CourierStatusEvent, tracking_number: str) -> bool:
    # Events recorded without a tracking number belong to the current shipment
    return event.tracking_number is not None and event.tracking_number != tracking_number


def apply_courier_event(
    order: Order,
    event: CourierStatusEvent,
    now: datetime | None = None,
    rules: tuple[StatusRule, ...] | None = None,
) -> Order:
    """Append ``event`` and re-derive application status from its text."""
    now = now or datetime.now(UTC)
    new_status = derive_app_status(order, event.status_text, rules if rules is not None else build_rules())

    changes = {
        "courier_status_history": order.courier_status_history + (event,),
        "latest_courier_status": event.status_text,
    }
    if new_status != order.app_status:
        if _PROGRESS_RANK.get(new_status, 0) < _PROGRESS_RANK.get(order.app_status, 0):
            logger.warning(
                "Courier status regressed",
                order_id=order.id,
                from_status=order.app_status.value,
                to_status=new_status.value,
                courier_status=event.status_text,
            )
        changes["app_status"] = new_status
        changes["message_status"] = MessageStatus.PENDING
        changes["message_status_before_failure"] = None

    entry = HistoryEntry.record(
        action=f"Courier: Status Polled - {event.status_text}",
        content=f"Courier status changed to: {event.status_text}",
        actor=POLLING_ACTOR,
        timestamp=now,
    )

    logger.info(
        "Courier event applied",
        order_id=order.id,
        tracking_number=order.tracking_number,
        courier_status=event.status_text,
        app_status=changes.get("app_status", order.app_status).value,
    )
    return order.evolve(entry, **changes)
