"""Confirmation reminders: nudge customers who have not confirmed their order.

An order is due once it is PendingConfirmation + Sent and the first message
went out at least ``confirmation_delay_hours`` ago. A successful reminder
moves it to ConfirmationSent, so each order is reminded at most once. Orders
with a message preview open (in flight) are left for the next scan.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ProteanException

from ordering.order.locks import get_in_flight
from ordering.order.messaging import DispatchOutcome, DispatchStatus, send_pending_notification
from ordering.order.order import AppStatus, MessageStatus, Order
from ordering.order.repository import get_repository
from shared.config import Settings, get_settings

logger = structlog.get_logger(__name__)

REMINDER_ACTOR = "System: Auto Reminder"


def due_for_reminder(order: Order, settings: Settings, now: datetime) -> bool:
    if order.app_status != AppStatus.PENDING_CONFIRMATION or order.message_status != MessageStatus.SENT:
        return False
    if order.message_sent_at is None:
        return False
    return now - order.message_sent_at >= timedelta(hours=settings.confirmation_delay_hours)


def scan_confirmation_reminders(now: datetime | None = None) -> list[DispatchOutcome]:
    """Send every due reminder. Returns one outcome per order attempted."""
    now = now or datetime.now(UTC)
    settings = get_settings()
    in_flight = get_in_flight()

    outcomes = []
    for order in get_repository().orders_with_status(AppStatus.PENDING_CONFIRMATION):
        if not due_for_reminder(order, settings, now):
            continue
        if in_flight.is_in_flight(order.id):
            logger.debug("Skipping reminder, message in flight", order_id=order.id)
            continue

        try:
            outcomes.append(send_pending_notification(order.id, actor=REMINDER_ACTOR, now=now))
        except ProteanException as e:
            logger.warning("Reminder failed", order_id=order.id, error=e.messages)

    sent = sum(1 for outcome in outcomes if outcome.status == DispatchStatus.SENT)
    logger.info("Reminder scan complete", attempted=len(outcomes), sent=sent)
    return outcomes
