"""Order repository: load and save ``Order`` values through ``OrderRecord``.

Callers hold the order's lock around a load/save pair; the repository itself
does no locking. ``get_repository()`` needs an active ordering domain context.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import AppStatus, Order
from ordering.order.record import OrderRecord


@ordering.repository(part_of=OrderRecord)
class OrderRepository:
    def load_order(self, order_id: str) -> Order:
        """Load an order by id.

        Raises:
            ObjectNotFoundError: if no order has that id.
        """
        try:
            record = self.get(order_id)
        except ObjectNotFoundError as exc:
            raise ObjectNotFoundError({"order_id": [f"Order {order_id} does not exist"]}) from exc
        return record.to_order()

    def save_order(self, order: Order) -> Order:
        """Insert or replace the stored version of ``order``."""
        values = OrderRecord.values_from(order)
        try:
            record = self.get(order.id)
        except ObjectNotFoundError:
            record = OrderRecord(order_id=order.id, **values)
        else:
            for name, value in values.items():
                setattr(record, name, value)
        self.add(record)
        return order

    def list_orders(self) -> list[Order]:
        """All orders, oldest first."""
        records = self._dao.query.all().items
        return sorted((record.to_order() for record in records), key=lambda order: order.order_timestamp)

    def orders_with_status(self, *statuses: AppStatus) -> list[Order]:
        orders = []
        for status in statuses:
            records = self._dao.query.filter(app_status=status.value).all().items
            orders.extend(record.to_order() for record in records)
        return sorted(orders, key=lambda order: order.order_timestamp)


def get_repository() -> OrderRepository:
    return current_domain.repository_for(OrderRecord)
