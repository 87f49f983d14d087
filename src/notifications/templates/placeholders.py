"""Placeholder engine: substitute ``{{token}}`` placeholders from an Order.

The vocabulary is closed. Unknown tokens stay verbatim, and so do known
tokens whose value is absent (e.g. ``{{trackingNumber}}`` before dispatch),
except ``{{trackingLink}}`` which renders ``N/A``. Replacement values are
inserted literally: customer data is never interpreted as a regex
replacement pattern.
"""

import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from ordering.order.order import AppStatus, Order
from shared.config import Settings, get_settings

NO_ITEMS_TEXT = "No items listed."
NOT_AVAILABLE = "N/A"


def round_half_up(amount: Decimal) -> int:
    return int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(currency_symbol: str, amount: Decimal) -> str:
    return f"{currency_symbol} {round_half_up(amount)}"


def advance_payment_amount(price: Decimal, discount_percentage: float) -> Decimal:
    return Decimal(price) * (Decimal(1) - Decimal(str(discount_percentage)) / Decimal(100))


def status_label(status: AppStatus) -> str:
    """Human-readable label, e.g. ``OutForDelivery`` → ``Out For Delivery``."""
    return re.sub(r"(?<!^)(?=[A-Z])", " ", status.value)


def items_list(order: Order) -> str:
    if not order.items:
        return NO_ITEMS_TEXT
    return "\n".join(f"- {item.name} (Qty: {item.quantity})" for item in order.items)


def placeholder_values(order: Order, settings: Settings, now: datetime | None = None) -> dict[str, str | None]:
    """Value for every known token; None means "leave the token verbatim"."""
    tracking_link = (
        f"{settings.tracking_url_prefix}{order.tracking_number}" if order.tracking_number else NOT_AVAILABLE
    )
    discount = settings.advance_discount_percentage

    return {
        "{{customerName}}": order.customer_name,
        "{{orderId}}": order.id,
        "{{phoneNumber}}": order.phone_number,
        "{{address}}": order.address,
        "{{city}}": order.city,
        "{{totalAmount}}": format_amount(order.currency_symbol, order.price),
        "{{currencySymbol}}": order.currency_symbol,
        "{{paymentMethod}}": order.payment_method,
        "{{deliveryMethod}}": order.delivery_method,
        "{{orderTimestamp}}": order.order_timestamp.strftime("%d/%m/%Y"),
        "{{itemsList}}": items_list(order),
        "{{trackingNumber}}": order.tracking_number,
        "{{trackingLink}}": tracking_link,
        "{{latestCourierStatus}}": order.latest_courier_status,
        "{{advancePaymentPrice}}": format_amount(order.currency_symbol, advance_payment_amount(order.price, discount)),
        "{{discountPercentage}}": f"{discount:g}",
        "{{paymentAccountNumber}}": settings.payment_account_number,
        "{{paymentAccountName}}": settings.payment_account_name,
        "{{appStatus}}": status_label(order.app_status),
    }


KNOWN_PLACEHOLDERS = (
    "{{customerName}}",
    "{{orderId}}",
    "{{phoneNumber}}",
    "{{address}}",
    "{{city}}",
    "{{totalAmount}}",
    "{{currencySymbol}}",
    "{{paymentMethod}}",
    "{{deliveryMethod}}",
    "{{orderTimestamp}}",
    "{{itemsList}}",
    "{{trackingNumber}}",
    "{{trackingLink}}",
    "{{latestCourierStatus}}",
    "{{advancePaymentPrice}}",
    "{{discountPercentage}}",
    "{{paymentAccountNumber}}",
    "{{paymentAccountName}}",
    "{{appStatus}}",
)


def render(template: str, order: Order, settings: Settings | None = None, now: datetime | None = None) -> str:
    """Replace every known placeholder in ``template`` with the order's data."""
    settings = settings or get_settings()
    text = template
    for token, value in placeholder_values(order, settings, now).items():
        if value is None:
            continue
        text = re.sub(re.escape(token), lambda _match, value=value: value, text)
    return text
