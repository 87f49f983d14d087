"""Shared BDD fixtures and step definitions for the Ordering domain."""

from decimal import Decimal

import pytest
from notifications.notification.intent import MessageIntent
from ordering.order.lifecycle import create_order
from ordering.order.messaging import DispatchStatus, pending_intent, send_pending_notification
from ordering.order.order import AppStatus, MessageStatus, OrderItem
from pytest_bdd import given, parsers, then


def _references(text: str) -> list[str]:
    """Split a step's comma-separated order ids."""
    return [reference.strip() for reference in text.split(",")]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def dispatch():
    """Container for the outcome of the last send attempt."""
    return {"outcome": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('order "{reference}" is "{app_status}" with message status "{message_status}"'))
def _(repo, reference, app_status, message_status):
    order = create_order(
        id=reference,
        customer_name="Ayesha Khan",
        phone_number="0300-1234567",
        address="House 12, Street 4",
        city="Lahore",
        items=[OrderItem(name="Lawn Suit", quantity=2)],
        price=Decimal("2500"),
    )
    repo.save_order(order.evolve(app_status=AppStatus(app_status), message_status=MessageStatus(message_status)))


@given(parsers.cfparse('the pending message of order "{reference}" was blocked'))
def _(sender, reference):
    outcome = send_pending_notification(reference)
    assert outcome.status == DispatchStatus.VALIDATION_FAILED


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('order "{reference}" has message status "{message_status}"'))
def _(repo, reference, message_status):
    assert repo.load_order(reference).message_status == MessageStatus(message_status)


@then(parsers.cfparse('orders "{reference_list}" are "{app_status}"'))
def _(repo, reference_list, app_status):
    for reference in _references(reference_list):
        assert repo.load_order(reference).app_status == AppStatus(app_status)


@then(parsers.cfparse('order "{reference}" is due a "{intent}" message'))
def _(reference, intent):
    assert pending_intent(reference).intent == MessageIntent(intent)


@then(parsers.cfparse('no message is pending for order "{reference}"'))
def _(reference):
    assert pending_intent(reference).nothing_pending


@then("no WhatsApp message was sent")
def _(sender):
    assert sender.sent_messages == []
