"""Courier poller: reconcile stored orders against the courier feed.

Each order is reconciled under its lock. When the courier moves an order to
a new application status (and ``auto_send_courier_notifications`` is on),
the notification dispatch flow runs immediately, unless an operator has a
message preview open for that order.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ProteanException

from fulfillment.carrier import get_courier_source
from fulfillment.carrier.port import CourierSourceError, CourierStatusSource
from fulfillment.courier.reconciler import POLLING_ACTOR, is_trackable, reconcile
from ordering.order.locks import get_in_flight, order_lock
from ordering.order.messaging import DispatchOutcome, send_pending_notification
from ordering.order.order import CourierStatusEvent, Order
from ordering.order.repository import get_repository
from shared.config import get_settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PollOutcome:
    order_id: str
    event: CourierStatusEvent | None = None
    status_changed: bool = False
    dispatch: DispatchOutcome | None = None
    error: str | None = None


def trackable_order_ids() -> list[str]:
    """Orders with a tracking number that are not Delivered, Cancelled or Archived."""
    return [order.id for order in get_repository().list_orders() if is_trackable(order)]


def poll_order(order_id: str, source: CourierStatusSource | None = None, now: datetime | None = None) -> PollOutcome:
    """Reconcile one order and notify the customer if its status moved.

    Raises:
        ObjectNotFoundError: if the order does not exist.
        CourierSourceError: if the courier feed is unavailable.
    """
    repo = get_repository()
    source = source or get_courier_source()
    now = now or datetime.now(UTC)

    with order_lock(order_id):
        before: Order = repo.load_order(order_id)
        result = reconcile(before, source, now)
        if not result.changed:
            return PollOutcome(order_id=order_id)

        repo.save_order(result.order)
        status_changed = result.order.app_status != before.app_status

        dispatch = None
        if status_changed and get_settings().auto_send_courier_notifications:
            if get_in_flight().is_in_flight(order_id):
                logger.info("Courier notification deferred, message in flight", order_id=order_id)
            else:
                dispatch = send_pending_notification(order_id, actor=POLLING_ACTOR, now=now)

    return PollOutcome(order_id=order_id, event=result.event, status_changed=status_changed, dispatch=dispatch)


def poll_all(source: CourierStatusSource | None = None, now: datetime | None = None) -> list[PollOutcome]:
    """Poll every trackable order; one order's failure never stops the cycle."""
    outcomes = []
    for order_id in trackable_order_ids():
        outcomes.append(poll_order_safely(order_id, source, now))

    logger.info(
        "Courier poll cycle complete",
        polled=len(outcomes),
        updated=sum(1 for outcome in outcomes if outcome.event is not None),
        errors=sum(1 for outcome in outcomes if outcome.error),
    )
    return outcomes


def poll_order_safely(
    order_id: str, source: CourierStatusSource | None = None, now: datetime | None = None
) -> PollOutcome:
    """``poll_order`` for background loops: errors are logged and reported, not raised."""
    try:
        with structlog.contextvars.bound_contextvars(order_id=order_id):
            return poll_order(order_id, source, now)
    except CourierSourceError as e:
        logger.warning("Courier feed unavailable", order_id=order_id, error=str(e.messages))
        return PollOutcome(order_id=order_id, error=str(e.messages))
    except ProteanException as e:
        logger.warning("Courier poll failed", order_id=order_id, error=str(e.messages))
        return PollOutcome(order_id=order_id, error=str(e.messages))
    except Exception as e:
        logger.exception("Unexpected error while polling order", order_id=order_id)
        return PollOutcome(order_id=order_id, error=str(e))
