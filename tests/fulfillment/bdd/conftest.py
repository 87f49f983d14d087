"""Shared BDD fixtures and step definitions for courier tracking."""

from datetime import UTC, datetime
from decimal import Decimal

from notifications.notification.intent import MessageIntent
from ordering.order.lifecycle import create_order
from ordering.order.messaging import pending_intent
from ordering.order.order import AppStatus, MessageStatus
from pytest_bdd import given, parsers, then

POLL_START = datetime(2024, 7, 28, 9, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("automatic courier notifications are disabled")
def _(configure_settings):
    configure_settings(auto_send_courier_notifications=False)


@given(parsers.cfparse('order "{reference}" was dispatched with tracking number "{tracking_number}"'))
def _(repo, reference, tracking_number):
    order = create_order(id=reference, customer_name="Farah", phone_number="03451234567", price=Decimal("3200"))
    repo.save_order(
        order.evolve(app_status=AppStatus.DISPATCHED, message_status=MessageStatus.SENT, tracking_number=tracking_number)
    )


@given(parsers.cfparse('the courier log for "{tracking_number}" reads "{statuses}"'))
def _(courier, tracking_number, statuses):
    courier.script(tracking_number, [status.strip() for status in statuses.split(";")], start=POLL_START)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('order "{reference}" is "{app_status}"'))
def _(repo, reference, app_status):
    assert repo.load_order(reference).app_status == AppStatus(app_status)


@then(parsers.cfparse('order "{reference}" has message status "{message_status}"'))
def _(repo, reference, message_status):
    assert repo.load_order(reference).message_status == MessageStatus(message_status)


@then(parsers.cfparse('exactly {count:d} "{intent}" message was sent to order "{reference}"'))
def _(repo, sender, count, intent, reference):
    history = repo.load_order(reference).message_history
    sent = [entry for entry in history if entry.action == f"Message Sent ({intent})"]
    assert len(sent) == count


@then(parsers.cfparse('order "{reference}" is due a "{intent}" message'))
def _(reference, intent):
    assert pending_intent(reference).intent == MessageIntent(intent)


@then(parsers.cfparse('no message is pending for order "{reference}"'))
def _(reference):
    assert pending_intent(reference).nothing_pending


@then("no WhatsApp message was sent")
def _(sender):
    assert sender.sent_messages == []
