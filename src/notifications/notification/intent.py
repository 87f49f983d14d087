"""Customer-facing message intents.

An intent names WHICH message an order is due for; the enum value doubles as
the template key in the template store.
"""

from enum import Enum


class MessageIntent(Enum):
    NEW_ORDER_INITIAL = "NewOrderInitial"
    CONFIRMATION_REMINDER = "ConfirmationReminder"
    PROCESSING_CONFIRMED = "ProcessingConfirmed"
    DISPATCH_NOTIFICATION = "DispatchNotification"
    CANCELLATION_NOTICE = "CancellationNotice"
    SHIPMENT_PICKED_UP = "ShipmentPickedUp"
    IN_TRANSIT_UPDATE = "InTransitUpdate"
    OUT_FOR_DELIVERY = "OutForDelivery"
    ADDRESS_NEEDED = "AddressNeeded"
    PREMISES_CLOSED = "PremisesClosed"
    DELIVERED_THANK_YOU = "DeliveredThankYou"
    GENERIC_COURIER_UPDATE = "GenericCourierUpdate"
    MANUAL_STATUS_CHANGE = "ManualStatusChange"


COURIER_UPDATE_INTENTS = frozenset(
    {
        MessageIntent.SHIPMENT_PICKED_UP,
        MessageIntent.IN_TRANSIT_UPDATE,
        MessageIntent.GENERIC_COURIER_UPDATE,
    }
)
