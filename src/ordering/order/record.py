"""Persistence shape of an order.

The full ``Order`` value is kept as a JSON snapshot. Status and tracking
columns are copied out of it so queries can filter without decoding.
"""

from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.aggregate
class OrderRecord:
    order_id = Identifier(identifier=True, required=True)
    customer_name = String(max_length=200)
    app_status = String(max_length=50, required=True)
    message_status = String(max_length=50, required=True)
    tracking_number = String(max_length=100)
    order_timestamp = DateTime()
    snapshot = Text(required=True)  # JSON of the complete Order value

    @staticmethod
    def values_from(order: Order) -> dict:
        return {
            "customer_name": order.customer_name,
            "app_status": order.app_status.value,
            "message_status": order.message_status.value,
            "tracking_number": order.tracking_number,
            "order_timestamp": order.order_timestamp,
            "snapshot": order.model_dump_json(),
        }

    def to_order(self) -> Order:
        return Order.model_validate_json(self.snapshot)
