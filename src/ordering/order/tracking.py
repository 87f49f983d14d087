"""Tracking number assignment: load, assign, save."""

from ordering.order.lifecycle import assign_tracking_number
from ordering.order.locks import order_lock
from ordering.order.order import Order
from ordering.order.repository import get_repository


def set_tracking_number(order_id: str, tracking_number: str, actor: str = "User: Tracking Assignment") -> Order:
    repo = get_repository()
    with order_lock(order_id):
        order = repo.load_order(order_id)
        order = assign_tracking_number(order, tracking_number, actor=actor)
        repo.save_order(order)
    return order
