"""Built-in message templates, one per message intent.

Templates are data: operators override the wording through the template
store; these defaults apply whenever no override is set.
"""

from dataclasses import dataclass

from notifications.notification.intent import MessageIntent

COMMON_PLACEHOLDERS = (
    "{{customerName}}",
    "{{orderId}}",
    "{{itemsList}}",
    "{{totalAmount}}",
    "{{address}}",
    "{{city}}",
    "{{phoneNumber}}",
)
TRACKING_PLACEHOLDERS = COMMON_PLACEHOLDERS + ("{{trackingNumber}}", "{{trackingLink}}")
COURIER_STATUS_PLACEHOLDERS = TRACKING_PLACEHOLDERS + ("{{latestCourierStatus}}",)
NEW_ORDER_PLACEHOLDERS = COMMON_PLACEHOLDERS + (
    "{{advancePaymentPrice}}",
    "{{paymentAccountNumber}}",
    "{{paymentAccountName}}",
    "{{discountPercentage}}",
)
MANUAL_STATUS_PLACEHOLDERS = ("{{customerName}}", "{{orderId}}", "{{appStatus}}")


@dataclass(frozen=True)
class TemplateDefinition:
    display_name: str
    template: str
    description: str = ""
    allowed_placeholders: tuple[str, ...] = ()


DEFAULT_TEMPLATES: dict[str, TemplateDefinition] = {
    MessageIntent.NEW_ORDER_INITIAL.value: TemplateDefinition(
        display_name="Initial New Order Notification",
        template=(
            "Hello {{customerName}}, thank you for your order #{{orderId}}!\n\n"
            "Items:\n{{itemsList}}\n\n"
            "Total: {{totalAmount}} (Cash on Delivery)\n"
            "Delivery address: {{address}}, {{city}}\n\n"
            "Pay in advance and get {{discountPercentage}}% off: send {{advancePaymentPrice}} "
            "to {{paymentAccountNumber}} ({{paymentAccountName}}).\n\n"
            "Please reply YES to confirm your order."
        ),
        description="Sent when a new order is created. Includes payment options and discount for advance payment.",
        allowed_placeholders=NEW_ORDER_PLACEHOLDERS,
    ),
    MessageIntent.CONFIRMATION_REMINDER.value: TemplateDefinition(
        display_name="Order Confirmation Reminder",
        template=(
            "Hello {{customerName}}, a quick reminder that your order #{{orderId}} "
            "({{totalAmount}}) is waiting for your confirmation. Please reply YES so we can dispatch it."
        ),
        description="Sent if the customer hasn't confirmed their order after a set period.",
        allowed_placeholders=COMMON_PLACEHOLDERS,
    ),
    MessageIntent.PROCESSING_CONFIRMED.value: TemplateDefinition(
        display_name="Order Processing Confirmed",
        template=(
            "Thank you {{customerName}}! Your order #{{orderId}} is confirmed and being prepared.\n\n"
            "Items:\n{{itemsList}}\n\nWe will share tracking details once it is dispatched."
        ),
        description="Sent after customer confirms order, before dispatch.",
        allowed_placeholders=COMMON_PLACEHOLDERS,
    ),
    MessageIntent.DISPATCH_NOTIFICATION.value: TemplateDefinition(
        display_name="Order Dispatch Notification",
        template=(
            "Good news {{customerName}}! Your order #{{orderId}} has been dispatched.\n\n"
            "Tracking number: {{trackingNumber}}\nTrack it here: {{trackingLink}}"
        ),
        description="Sent when an order is dispatched. Includes tracking information.",
        allowed_placeholders=TRACKING_PLACEHOLDERS,
    ),
    MessageIntent.CANCELLATION_NOTICE.value: TemplateDefinition(
        display_name="Order Cancellation Notification",
        template=(
            "Hello {{customerName}}, your order #{{orderId}} has been cancelled. "
            "If this was unexpected, please reply to this message."
        ),
        description="Sent when an order is cancelled.",
        allowed_placeholders=COMMON_PLACEHOLDERS,
    ),
    MessageIntent.SHIPMENT_PICKED_UP.value: TemplateDefinition(
        display_name="Courier: Shipment Picked Up",
        template=(
            "Hello {{customerName}}, the courier has picked up your order #{{orderId}}.\n"
            "Status: {{latestCourierStatus}}\nTrack it here: {{trackingLink}}"
        ),
        description="Sent when courier has picked up the shipment.",
        allowed_placeholders=COURIER_STATUS_PLACEHOLDERS,
    ),
    MessageIntent.IN_TRANSIT_UPDATE.value: TemplateDefinition(
        display_name="Courier: In Transit Update",
        template=(
            "Hello {{customerName}}, your order #{{orderId}} is on its way.\n"
            "Latest update: {{latestCourierStatus}}\nTrack it here: {{trackingLink}}"
        ),
        description="Sent for generic 'In Transit' updates from the courier.",
        allowed_placeholders=COURIER_STATUS_PLACEHOLDERS,
    ),
    MessageIntent.OUT_FOR_DELIVERY.value: TemplateDefinition(
        display_name="Courier: Out for Delivery",
        template=(
            "Hello {{customerName}}, your order #{{orderId}} is out for delivery today! "
            "Please keep {{totalAmount}} ready and stay reachable on {{phoneNumber}}."
        ),
        description="Sent when the courier status indicates the parcel is out for delivery.",
        allowed_placeholders=TRACKING_PLACEHOLDERS,
    ),
    MessageIntent.ADDRESS_NEEDED.value: TemplateDefinition(
        display_name="Courier: Address Information Needed",
        template=(
            "Hello {{customerName}}, the courier could not complete delivery of order #{{orderId}} "
            "because the address needs more detail. We have: {{address}}, {{city}}. "
            "Please reply with your complete address and a nearby landmark."
        ),
        description="Sent when the courier status indicates more address information is needed.",
        allowed_placeholders=TRACKING_PLACEHOLDERS,
    ),
    MessageIntent.PREMISES_CLOSED.value: TemplateDefinition(
        display_name="Courier: Recipient Premises Closed",
        template=(
            "Hello {{customerName}}, the courier tried to deliver order #{{orderId}} but the premises "
            "were closed ({{latestCourierStatus}}). Please reply with a convenient time for delivery."
        ),
        description="Sent if delivery attempt failed because recipient's premises were closed.",
        allowed_placeholders=COURIER_STATUS_PLACEHOLDERS,
    ),
    MessageIntent.DELIVERED_THANK_YOU.value: TemplateDefinition(
        display_name="Courier: Order Delivered - Thank You",
        template=(
            "Hello {{customerName}}, your order #{{orderId}} has been delivered. "
            "Thank you for shopping with us! We would love to hear your feedback."
        ),
        description="Sent after successful delivery to thank the customer and ask for feedback.",
        allowed_placeholders=TRACKING_PLACEHOLDERS,
    ),
    MessageIntent.GENERIC_COURIER_UPDATE.value: TemplateDefinition(
        display_name="Courier: Generic Status Update",
        template=(
            "Hello {{customerName}}, there is an update on your order #{{orderId}}: "
            "{{latestCourierStatus}}.\nTrack it here: {{trackingLink}}"
        ),
        description="Sent for other courier status updates that don't have a specific message type.",
        allowed_placeholders=COURIER_STATUS_PLACEHOLDERS,
    ),
    MessageIntent.MANUAL_STATUS_CHANGE.value: TemplateDefinition(
        display_name="Manual Order Status Change",
        template="Hello {{customerName}}, the status of your order #{{orderId}} is now: {{appStatus}}.",
        description="Generic notification sent when an order's status is manually changed by a user.",
        allowed_placeholders=MANUAL_STATUS_PLACEHOLDERS,
    ),
}
