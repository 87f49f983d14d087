"""Order lifecycle mutator: commit the outcome of a notification attempt.

A successful send moves the order along a fixed per-intent table. A failed
send leaves the application status alone and records ErrorSendingFailed,
remembering the message status in force before the attempt so the same
intent is offered again. Every call appends exactly one history entry.

Archived orders reject every mutation.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

from notifications.notification.intent import COURIER_UPDATE_INTENTS, MessageIntent
from ordering.order.order import AppStatus, ArchivedOrderError, HistoryEntry, MessageStatus, Order

logger = structlog.get_logger(__name__)

SEND_ERROR_ACTOR = "System: Send Error"
VALIDATION_ACTOR = "System: Validation"


@dataclass(frozen=True)
class SuccessTransition:
    message_status: MessageStatus
    app_status: AppStatus | None = None
    flag: str | None = None


_SUCCESS_TRANSITIONS: dict[MessageIntent, SuccessTransition] = {
    MessageIntent.NEW_ORDER_INITIAL: SuccessTransition(MessageStatus.SENT),
    MessageIntent.CONFIRMATION_REMINDER: SuccessTransition(MessageStatus.CONFIRMATION_SENT),
    MessageIntent.PROCESSING_CONFIRMED: SuccessTransition(MessageStatus.SENT),
    MessageIntent.DISPATCH_NOTIFICATION: SuccessTransition(MessageStatus.SENT, app_status=AppStatus.DISPATCHED),
    MessageIntent.CANCELLATION_NOTICE: SuccessTransition(MessageStatus.SENT),
    MessageIntent.SHIPMENT_PICKED_UP: SuccessTransition(MessageStatus.NOTIFIED),
    MessageIntent.IN_TRANSIT_UPDATE: SuccessTransition(MessageStatus.NOTIFIED),
    MessageIntent.GENERIC_COURIER_UPDATE: SuccessTransition(MessageStatus.NOTIFIED),
    MessageIntent.OUT_FOR_DELIVERY: SuccessTransition(MessageStatus.NOTIFIED, flag="out_for_delivery_notified"),
    MessageIntent.ADDRESS_NEEDED: SuccessTransition(MessageStatus.NOTIFIED, flag="address_issue_notified"),
    MessageIntent.PREMISES_CLOSED: SuccessTransition(MessageStatus.NOTIFIED, flag="address_issue_notified"),
    MessageIntent.DELIVERED_THANK_YOU: SuccessTransition(MessageStatus.NOTIFIED),
    MessageIntent.MANUAL_STATUS_CHANGE: SuccessTransition(MessageStatus.NOTIFIED),
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_not_archived(order: Order) -> None:
    if order.is_archived:
        raise ArchivedOrderError(order.id)


def create_order(actor: str = "User: Order Form", now: datetime | None = None, **data) -> Order:
    """Create an order in PendingConfirmation / Pending."""
    order = Order.create(actor=actor, now=now, **data)
    logger.info("Order created", order_id=order.id, item_count=len(order.items))
    return order


def apply_notification_result(
    order: Order,
    intent: MessageIntent,
    rendered_text: str,
    send_succeeded: bool,
    actor: str | None = None,
    failure_reason: str | None = None,
    failure_actor: str = SEND_ERROR_ACTOR,
    now: datetime | None = None,
) -> Order:
    """Return the order after a send attempt for ``intent``."""
    _ensure_not_archived(order)
    now = now or _utcnow()

    if not send_succeeded:
        before = (
            order.message_status_before_failure
            if order.message_status == MessageStatus.ERROR_SENDING_FAILED
            else order.message_status
        )
        reason = failure_reason or "Unknown error"
        entry = HistoryEntry.record(
            action=f"Message Send Failed ({intent.value})",
            content=f"Error: {reason}. Message: {rendered_text}",
            actor=failure_actor,
            timestamp=now,
            intent=intent.value,
            detail=reason,
        )
        logger.warning("Notification send failed", order_id=order.id, intent=intent.value, reason=reason)
        return order.evolve(
            entry,
            message_status=MessageStatus.ERROR_SENDING_FAILED,
            message_status_before_failure=before,
        )

    transition = _SUCCESS_TRANSITIONS[intent]
    changes = {
        "message_status": transition.message_status,
        "message_sent_at": now,
        "message_status_before_failure": None,
    }
    if transition.app_status is not None:
        changes["app_status"] = transition.app_status
    if transition.flag is not None:
        changes[transition.flag] = True
    if intent in COURIER_UPDATE_INTENTS:
        changes["last_notified_status_text"] = order.latest_courier_status

    entry = HistoryEntry.record(
        action=f"Message Sent ({intent.value})",
        content=rendered_text,
        actor=actor or f"User: Template ({intent.value})",
        timestamp=now,
        intent=intent.value,
    )
    logger.info(
        "Notification recorded",
        order_id=order.id,
        intent=intent.value,
        message_status=transition.message_status.value,
    )
    return order.evolve(entry, **changes)


def record_validation_failure(
    order: Order,
    error_status: MessageStatus,
    reason: str,
    actor: str = VALIDATION_ACTOR,
    now: datetime | None = None,
) -> Order:
    """Record a blocked send (missing tracking number, unusable data)."""
    _ensure_not_archived(order)
    if error_status not in (MessageStatus.ERROR_MISSING_CN, MessageStatus.ERROR_MISSING_DATA):
        raise ValidationError({"error_status": [f"{error_status.value} is not a validation error status"]})

    entry = HistoryEntry.record(
        action=f"Validation Failed ({error_status.value})",
        content=reason,
        actor=actor,
        timestamp=now or _utcnow(),
        detail=reason,
    )
    logger.warning("Notification blocked", order_id=order.id, error_status=error_status.value, reason=reason)
    return order.evolve(entry, message_status=error_status)


def record_customer_confirmation(
    order: Order,
    actor: str = "User: Customer Confirmation",
    now: datetime | None = None,
) -> Order:
    """Customer confirmed the order after the initial message or the reminder."""
    _ensure_not_archived(order)
    if order.app_status != AppStatus.PENDING_CONFIRMATION or order.message_status not in (
        MessageStatus.SENT,
        MessageStatus.CONFIRMATION_SENT,
    ):
        raise ValidationError(
            {
                "message_status": [
                    "Order can only be confirmed after the confirmation message was sent "
                    f"(current: {order.app_status.value}/{order.message_status.value})"
                ]
            }
        )

    entry = HistoryEntry.record(
        action="Customer Confirmed Order",
        content="Customer confirmed the order. Status moved to Processing.",
        actor=actor,
        timestamp=now or _utcnow(),
    )
    logger.info("Customer confirmed order", order_id=order.id)
    return order.evolve(
        entry,
        app_status=AppStatus.PROCESSING,
        message_status=MessageStatus.CUSTOMER_CONFIRMED,
    )


def assign_tracking_number(
    order: Order,
    tracking_number: str,
    actor: str = "User: Tracking Assignment",
    now: datetime | None = None,
) -> Order:
    """Attach a courier tracking number; clears a pending ErrorMissingCN.

    Reassigning a different number keeps the courier history of the old
    shipment; the reconciler starts a fresh sequence for the new one.
    """
    _ensure_not_archived(order)
    tracking_number = tracking_number.strip()
    if not tracking_number:
        raise ValidationError({"tracking_number": ["Tracking number must not be empty"]})

    changes: dict = {"tracking_number": tracking_number}
    if order.message_status == MessageStatus.ERROR_MISSING_CN:
        changes["message_status"] = MessageStatus.PENDING

    previous = order.tracking_number
    if previous and previous != tracking_number:
        content = f"Tracking number changed from {previous} to {tracking_number}."
    else:
        content = f"Tracking number set to {tracking_number}."

    entry = HistoryEntry.record(
        action="Tracking Number Assigned",
        content=content,
        actor=actor,
        timestamp=now or _utcnow(),
    )
    logger.info(
        "Tracking number assigned",
        order_id=order.id,
        tracking_number=tracking_number,
        previous_tracking_number=previous,
    )
    return order.evolve(entry, **changes)
