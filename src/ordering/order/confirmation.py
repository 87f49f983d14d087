"""Customer confirmation: load, confirm, save."""

from ordering.order.lifecycle import record_customer_confirmation
from ordering.order.locks import order_lock
from ordering.order.order import Order
from ordering.order.repository import get_repository


def confirm_order(order_id: str, actor: str = "User: Customer Confirmation") -> Order:
    repo = get_repository()
    with order_lock(order_id):
        order = repo.load_order(order_id)
        order = record_customer_confirmation(order, actor=actor)
        repo.save_order(order)
    return order
