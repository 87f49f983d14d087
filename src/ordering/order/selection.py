"""Notification intent selector: which message is an order due for?

Pure function of the Order. Rules are checked top to bottom and the first
match wins; their predicates are mutually exclusive, so the order only
matters for readability.

    1. PendingConfirmation + Pending             → NewOrderInitial
    2. PendingConfirmation + Sent                → ConfirmationReminder
    3. Processing + Pending/CustomerConfirmed    → ProcessingConfirmed
    4. Dispatched + Pending                      → DispatchNotification
                                                   (ErrorMissingCN without tracking number)
    5. OutForDelivery, not yet notified          → OutForDelivery
    6. AddressIssue, not yet notified            → PremisesClosed / AddressNeeded
    7. Delivered, not Notified/CustomerConfirmed → DeliveredThankYou
    8. Cancelled + Pending                       → CancellationNotice
    9. tracked InTransit + Pending               → ShipmentPickedUp / InTransitUpdate / GenericCourierUpdate

After a failed send the order is judged by the message status it had before
the attempt, so the same intent is offered again.
"""

from collections.abc import Callable
from dataclasses import dataclass

from fulfillment.courier.classification import PICKED_UP_KEYWORDS, PREMISES_CLOSED_KEYWORDS, mentions
from notifications.notification.intent import MessageIntent
from ordering.order.order import AppStatus, MessageStatus, Order


@dataclass(frozen=True)
class IntentSelection:
    intent: MessageIntent | None = None
    validation_error: MessageStatus | None = None
    reason: str = ""
    rule: str | None = None

    @property
    def is_validation_failure(self) -> bool:
        return self.validation_error is not None

    @property
    def nothing_pending(self) -> bool:
        return self.intent is None and self.validation_error is None


@dataclass(frozen=True)
class SelectionRule:
    name: str
    applies: Callable[[Order, MessageStatus], bool]
    select: Callable[[Order], IntentSelection]


def effective_message_status(order: Order) -> MessageStatus:
    """Message status used for selection; failed sends fall back to the pre-failure status."""
    if order.message_status == MessageStatus.ERROR_SENDING_FAILED and order.message_status_before_failure:
        return order.message_status_before_failure
    return order.message_status


# ---------------------------------------------------------------------------
# Rule resolvers
# ---------------------------------------------------------------------------
def _fixed(intent: MessageIntent, reason: str) -> Callable[[Order], IntentSelection]:
    return lambda _order: IntentSelection(intent=intent, reason=reason)


def _dispatch(order: Order) -> IntentSelection:
    if not order.tracking_number:
        return IntentSelection(
            validation_error=MessageStatus.ERROR_MISSING_CN,
            reason="Tracking number is required before the dispatch message can be sent.",
        )
    return IntentSelection(intent=MessageIntent.DISPATCH_NOTIFICATION, reason="Order dispatched")


def _address_issue(order: Order) -> IntentSelection:
    if mentions(order.latest_courier_status, PREMISES_CLOSED_KEYWORDS):
        return IntentSelection(intent=MessageIntent.PREMISES_CLOSED, reason="Recipient premises closed")
    return IntentSelection(intent=MessageIntent.ADDRESS_NEEDED, reason="Courier needs address information")


def _courier_update(order: Order) -> IntentSelection:
    if mentions(order.latest_courier_status, PICKED_UP_KEYWORDS):
        return IntentSelection(intent=MessageIntent.SHIPMENT_PICKED_UP, reason="Shipment picked up")
    if order.app_status == AppStatus.IN_TRANSIT:
        return IntentSelection(intent=MessageIntent.IN_TRANSIT_UPDATE, reason="Shipment in transit")
    return IntentSelection(intent=MessageIntent.GENERIC_COURIER_UPDATE, reason="Courier status update")


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------
RULES: tuple[SelectionRule, ...] = (
    SelectionRule(
        "new_order",
        lambda o, ms: o.app_status == AppStatus.PENDING_CONFIRMATION and ms == MessageStatus.PENDING,
        _fixed(MessageIntent.NEW_ORDER_INITIAL, "New order awaiting first message"),
    ),
    SelectionRule(
        "confirmation_reminder",
        lambda o, ms: o.app_status == AppStatus.PENDING_CONFIRMATION and ms == MessageStatus.SENT,
        _fixed(MessageIntent.CONFIRMATION_REMINDER, "Customer has not confirmed yet"),
    ),
    SelectionRule(
        "processing_confirmed",
        lambda o, ms: o.app_status == AppStatus.PROCESSING
        and ms in (MessageStatus.PENDING, MessageStatus.CUSTOMER_CONFIRMED),
        _fixed(MessageIntent.PROCESSING_CONFIRMED, "Order confirmed and processing"),
    ),
    SelectionRule(
        "dispatch",
        lambda o, ms: o.app_status == AppStatus.DISPATCHED and ms == MessageStatus.PENDING,
        _dispatch,
    ),
    SelectionRule(
        "out_for_delivery",
        lambda o, ms: o.app_status == AppStatus.OUT_FOR_DELIVERY and not o.out_for_delivery_notified,
        _fixed(MessageIntent.OUT_FOR_DELIVERY, "Parcel out for delivery"),
    ),
    SelectionRule(
        "address_issue",
        lambda o, ms: o.app_status == AppStatus.ADDRESS_ISSUE and not o.address_issue_notified,
        _address_issue,
    ),
    SelectionRule(
        "delivered",
        lambda o, ms: o.app_status == AppStatus.DELIVERED
        and ms not in (MessageStatus.NOTIFIED, MessageStatus.CUSTOMER_CONFIRMED),
        _fixed(MessageIntent.DELIVERED_THANK_YOU, "Parcel delivered"),
    ),
    SelectionRule(
        "cancelled",
        lambda o, ms: o.app_status == AppStatus.CANCELLED and ms == MessageStatus.PENDING,
        _fixed(MessageIntent.CANCELLATION_NOTICE, "Order cancelled"),
    ),
    SelectionRule(
        "courier_update",
        # Dispatched + Pending is claimed by the dispatch rule
        lambda o, ms: bool(o.tracking_number) and o.app_status == AppStatus.IN_TRANSIT and ms == MessageStatus.PENDING,
        _courier_update,
    ),
)


def matching_rules(order: Order) -> list[str]:
    """Names of every rule whose predicate holds, evaluated independently."""
    status = effective_message_status(order)
    return [rule.name for rule in RULES if rule.applies(order, status)]


def select_intent(order: Order) -> IntentSelection:
    """Return the next customer-facing action for ``order``.

    Returns:
        IntentSelection with an intent, a validation error, or neither
        ("nothing pending").
    """
    if order.is_archived:
        return IntentSelection(reason="Order is archived")

    status = effective_message_status(order)
    for rule in RULES:
        if rule.applies(order, status):
            selection = rule.select(order)
            return IntentSelection(
                intent=selection.intent,
                validation_error=selection.validation_error,
                reason=selection.reason,
                rule=rule.name,
            )
    return IntentSelection(reason="Nothing pending")
