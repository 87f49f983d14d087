"""Tests for storing orders through the ordering domain's repository."""

import importlib
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from ordering.order.lifecycle import assign_tracking_number, create_order
from ordering.order.order import AppStatus, CourierStatusEvent, MessageStatus
from ordering.order.record import OrderRecord
from ordering.order.repository import OrderRepository, get_repository
from protean.exceptions import ObjectNotFoundError

NOW = datetime(2024, 7, 28, 12, 0, tzinfo=UTC)


def _make_order(order_id="ORD-7001", minutes_ago=0, **fields):
    order = create_order(
        id=order_id,
        customer_name="Bilal Ahmed",
        phone_number="03001234567",
        price=Decimal("2750.50"),
        order_timestamp=NOW - timedelta(minutes=minutes_ago),
    )
    return order.evolve(**fields) if fields else order


class TestRepositoryModule:
    def test_module_imports_cleanly(self):
        module = importlib.import_module("ordering.order.repository")
        assert module.OrderRepository is OrderRepository

    def test_repository_registered_for_order_record(self):
        assert isinstance(get_repository(), OrderRepository)


class TestSaveAndLoad:
    def test_saved_order_loads_back_equal(self, repo):
        order = assign_tracking_number(_make_order(app_status=AppStatus.DISPATCHED), "TCS123", now=NOW)
        order = order.evolve(courier_status_history=(CourierStatusEvent.bootstrap(NOW, "TCS123"),))

        repo.save_order(order)

        assert repo.load_order(order.id) == order

    def test_save_replaces_stored_version(self, repo):
        order = repo.save_order(_make_order())
        repo.save_order(order.evolve(message_status=MessageStatus.SENT))

        assert repo.load_order(order.id).message_status == MessageStatus.SENT
        assert len(repo.list_orders()) == 1

    def test_unknown_order_raises_not_found(self, repo):
        with pytest.raises(ObjectNotFoundError) as exc_info:
            repo.load_order("ORD-MISSING")
        assert exc_info.value.messages == {"order_id": ["Order ORD-MISSING does not exist"]}

    def test_record_columns_mirror_the_order(self, repo):
        repo.save_order(_make_order(app_status=AppStatus.PROCESSING, tracking_number="TCS9"))

        record = repo.get("ORD-7001")

        assert isinstance(record, OrderRecord)
        assert record.app_status == AppStatus.PROCESSING.value
        assert record.tracking_number == "TCS9"


class TestQueries:
    def test_list_orders_oldest_first(self, repo):
        repo.save_order(_make_order("ORD-NEW", minutes_ago=1))
        repo.save_order(_make_order("ORD-OLD", minutes_ago=30))

        assert [order.id for order in repo.list_orders()] == ["ORD-OLD", "ORD-NEW"]

    def test_orders_with_status_filters(self, repo):
        repo.save_order(_make_order("ORD-A", minutes_ago=3))
        repo.save_order(_make_order("ORD-B", minutes_ago=2, app_status=AppStatus.DISPATCHED))
        repo.save_order(_make_order("ORD-C", minutes_ago=1, app_status=AppStatus.IN_TRANSIT))

        dispatched_or_transit = repo.orders_with_status(AppStatus.DISPATCHED, AppStatus.IN_TRANSIT)

        assert [order.id for order in dispatched_or_transit] == ["ORD-B", "ORD-C"]
        assert [order.id for order in repo.orders_with_status(AppStatus.PENDING_CONFIRMATION)] == ["ORD-A"]
