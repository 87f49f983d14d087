"""Application tests for the notification dispatch flow against the fake sender."""

import time
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from notifications.channel import set_sender
from notifications.channel.port import NotificationSender, SendResult
from notifications.notification.intent import MessageIntent
from notifications.templates import get_template_store
from notifications.templates.defaults import DEFAULT_TEMPLATES
from ordering.order.lifecycle import SEND_ERROR_ACTOR, create_order
from ordering.order.locks import get_in_flight
from ordering.order.messaging import (
    EXCEPTION_ACTOR,
    DispatchStatus,
    discard_pending_message,
    pending_intent,
    preview_pending_message,
    send_pending_notification,
)
from ordering.order.order import AppStatus, ArchivedOrderError, MessageStatus, OrderItem
from ordering.order.tracking import set_tracking_number
from protean.exceptions import ObjectNotFoundError

NOW = datetime(2024, 7, 28, 12, 0, tzinfo=UTC)


class ExplodingSender(NotificationSender):
    def send(self, phone_number: str, text: str) -> SendResult:
        raise RuntimeError("connection reset by provider")


class SlowSender(NotificationSender):
    def send(self, phone_number: str, text: str) -> SendResult:
        time.sleep(0.5)
        return SendResult(succeeded=True)


def _store_order(repo, order_id="ORD-5001", app_status=None, message_status=None, **fields):
    order = create_order(
        id=order_id,
        customer_name="Ayesha Khan",
        phone_number="0300-1234567",
        address="House 12, Street 4",
        city="Lahore",
        items=[OrderItem(name="Lawn Suit", quantity=2)],
        price=Decimal("2500"),
    )
    changes = dict(fields)
    if app_status is not None:
        changes["app_status"] = app_status
    if message_status is not None:
        changes["message_status"] = message_status
    if changes:
        order = order.evolve(**changes)
    return repo.save_order(order)


# ---------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------
class TestSendPendingNotification:
    def test_new_order_message_sent_to_normalized_number(self, repo, sender):
        _store_order(repo)

        outcome = send_pending_notification("ORD-5001", now=NOW)

        assert outcome.status == DispatchStatus.SENT
        assert outcome.intent == MessageIntent.NEW_ORDER_INITIAL
        (message,) = sender.sent_messages
        assert message["to"] == "923001234567"
        assert "Ayesha Khan" in message["text"]
        assert "{{" not in message["text"]

        stored = repo.load_order("ORD-5001")
        assert stored.message_status == MessageStatus.SENT
        assert stored.message_sent_at == NOW
        assert stored.message_history[-1].action == "Message Sent (NewOrderInitial)"

    def test_out_for_delivery_sent_once(self, repo, sender):
        _store_order(repo, app_status=AppStatus.OUT_FOR_DELIVERY, tracking_number="TCS123456789")

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.SENT
        stored = repo.load_order("ORD-5001")
        assert stored.out_for_delivery_notified is True
        assert stored.message_status == MessageStatus.NOTIFIED
        assert pending_intent("ORD-5001").nothing_pending
        assert send_pending_notification("ORD-5001").status == DispatchStatus.NOTHING_PENDING
        assert len(sender.sent_messages) == 1

    def test_nothing_pending_leaves_order_untouched(self, repo, sender):
        stored = _store_order(repo, app_status=AppStatus.PROCESSING, message_status=MessageStatus.SENT)

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.NOTHING_PENDING
        assert repo.load_order("ORD-5001") == stored
        assert sender.sent_messages == []

    def test_operator_text_replaces_rendered_template(self, repo, sender):
        _store_order(repo)

        send_pending_notification("ORD-5001", text="Custom hello", actor="User: Ops Desk")

        assert sender.sent_messages[0]["text"] == "Custom hello"
        assert repo.load_order("ORD-5001").message_history[-1].actor == "User: Ops Desk"

    def test_explicit_intent_bypasses_selector(self, repo, sender):
        _store_order(
            repo,
            app_status=AppStatus.DISPATCHED,
            message_status=MessageStatus.SENT,
            tracking_number="TCS1",
            latest_courier_status="Arrived at Sorting Facility",
        )

        outcome = send_pending_notification("ORD-5001", intent=MessageIntent.GENERIC_COURIER_UPDATE)

        assert outcome.status == DispatchStatus.SENT
        stored = repo.load_order("ORD-5001")
        assert stored.message_status == MessageStatus.NOTIFIED
        assert stored.last_notified_status_text == "Arrived at Sorting Facility"

    def test_custom_template_override_is_used(self, repo, sender):
        get_template_store().set_override(MessageIntent.NEW_ORDER_INITIAL.value, "Hi {{customerName}}, order {{orderId}}")
        _store_order(repo)

        send_pending_notification("ORD-5001")

        assert sender.sent_messages[0]["text"] == "Hi Ayesha Khan, order ORD-5001"

    def test_unknown_order(self, sender):
        with pytest.raises(ObjectNotFoundError):
            send_pending_notification("missing")


# ---------------------------------------------------------------
# Validation failures: nothing is sent
# ---------------------------------------------------------------
class TestBlockedSends:
    def test_dispatch_without_tracking_number(self, repo, sender):
        _store_order(repo, app_status=AppStatus.DISPATCHED, message_status=MessageStatus.PENDING)

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.VALIDATION_FAILED
        assert sender.sent_messages == []
        assert repo.load_order("ORD-5001").message_status == MessageStatus.ERROR_MISSING_CN

    def test_missing_cn_recovers_after_tracking_assignment(self, repo, sender):
        _store_order(repo, app_status=AppStatus.DISPATCHED, message_status=MessageStatus.PENDING)
        send_pending_notification("ORD-5001")

        set_tracking_number("ORD-5001", "TCS123456789")
        assert pending_intent("ORD-5001").intent == MessageIntent.DISPATCH_NOTIFICATION

        outcome = send_pending_notification("ORD-5001")
        assert outcome.status == DispatchStatus.SENT
        assert "TCS123456789" in sender.sent_messages[0]["text"]

    def test_explicit_dispatch_intent_requires_tracking_number(self, repo, sender):
        _store_order(repo, app_status=AppStatus.PROCESSING, message_status=MessageStatus.SENT)

        outcome = send_pending_notification("ORD-5001", intent=MessageIntent.DISPATCH_NOTIFICATION)

        assert outcome.status == DispatchStatus.VALIDATION_FAILED
        assert repo.load_order("ORD-5001").message_status == MessageStatus.ERROR_MISSING_CN
        assert sender.sent_messages == []

    def test_invalid_phone_number(self, repo, sender):
        _store_order(repo, phone_number="12345")

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.VALIDATION_FAILED
        assert repo.load_order("ORD-5001").message_status == MessageStatus.ERROR_MISSING_DATA
        assert sender.sent_messages == []

    def test_missing_template(self, repo, sender, monkeypatch):
        monkeypatch.delitem(DEFAULT_TEMPLATES, MessageIntent.NEW_ORDER_INITIAL.value)
        _store_order(repo)

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.VALIDATION_FAILED
        assert "Template for NewOrderInitial not found" in outcome.detail
        assert repo.load_order("ORD-5001").message_status == MessageStatus.ERROR_MISSING_DATA
        assert sender.sent_messages == []

    def test_operator_text_sends_despite_missing_template(self, repo, sender, monkeypatch):
        monkeypatch.delitem(DEFAULT_TEMPLATES, MessageIntent.NEW_ORDER_INITIAL.value)
        _store_order(repo)

        outcome = send_pending_notification("ORD-5001", intent=MessageIntent.NEW_ORDER_INITIAL, text="Hello there")

        assert outcome.status == DispatchStatus.SENT
        assert sender.sent_messages[0]["text"] == "Hello there"


# ---------------------------------------------------------------
# Provider failures
# ---------------------------------------------------------------
class TestSendFailures:
    def test_failure_then_retry(self, repo, sender):
        _store_order(repo, app_status=AppStatus.DISPATCHED, tracking_number="TCS1")
        sender.configure(should_succeed=False, failure_reason="Recipient not on WhatsApp")

        failed = send_pending_notification("ORD-5001")

        assert failed.status == DispatchStatus.FAILED
        stored = repo.load_order("ORD-5001")
        assert stored.message_status == MessageStatus.ERROR_SENDING_FAILED
        assert stored.app_status == AppStatus.DISPATCHED
        assert "Recipient not on WhatsApp" in stored.message_history[-1].content_snippet
        assert stored.message_history[-1].actor == SEND_ERROR_ACTOR
        assert pending_intent("ORD-5001").intent == MessageIntent.DISPATCH_NOTIFICATION

        sender.configure(should_succeed=True)
        retried = send_pending_notification("ORD-5001")

        assert retried.status == DispatchStatus.SENT
        assert repo.load_order("ORD-5001").message_status == MessageStatus.SENT

    def test_sender_exception_recorded_as_failure(self, repo):
        set_sender(ExplodingSender())
        _store_order(repo)

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.FAILED
        entry = repo.load_order("ORD-5001").message_history[-1]
        assert entry.actor == EXCEPTION_ACTOR
        assert "connection reset by provider" in entry.content_snippet

    def test_sender_timeout_recorded_as_failure(self, repo, configure_settings):
        configure_settings(sender_timeout_seconds=0.05)
        set_sender(SlowSender())
        _store_order(repo)

        outcome = send_pending_notification("ORD-5001")

        assert outcome.status == DispatchStatus.FAILED
        assert "timed out" in outcome.detail
        assert repo.load_order("ORD-5001").message_status == MessageStatus.ERROR_SENDING_FAILED


# ---------------------------------------------------------------
# Archived orders and previews
# ---------------------------------------------------------------
class TestArchivedOrders:
    def test_send_rejected(self, repo, sender):
        _store_order(repo, app_status=AppStatus.ARCHIVED, message_status=MessageStatus.NOTIFIED)

        with pytest.raises(ArchivedOrderError):
            send_pending_notification("ORD-5001", intent=MessageIntent.MANUAL_STATUS_CHANGE)
        assert sender.sent_messages == []

    def test_pending_intent_reports_nothing(self, repo):
        _store_order(repo, app_status=AppStatus.ARCHIVED)
        selection = pending_intent("ORD-5001")
        assert selection.nothing_pending
        assert selection.reason == "Order is archived"


class TestPreview:
    def test_preview_renders_and_marks_in_flight(self, repo):
        _store_order(repo)

        preview = preview_pending_message("ORD-5001")

        assert preview.selection.intent == MessageIntent.NEW_ORDER_INITIAL
        assert preview.message.display_name == "Initial New Order Notification"
        assert "Ayesha Khan" in preview.message.text
        assert get_in_flight().is_in_flight("ORD-5001")

    def test_discard_clears_marker_without_history(self, repo):
        stored = _store_order(repo)
        preview_pending_message("ORD-5001")

        discard_pending_message("ORD-5001")

        assert not get_in_flight().is_in_flight("ORD-5001")
        assert repo.load_order("ORD-5001").message_history == stored.message_history

    def test_send_clears_marker(self, repo, sender):
        _store_order(repo)
        preview_pending_message("ORD-5001")

        send_pending_notification("ORD-5001")

        assert not get_in_flight().is_in_flight("ORD-5001")

    def test_nothing_to_preview(self, repo):
        _store_order(repo, app_status=AppStatus.DELIVERED, message_status=MessageStatus.NOTIFIED)

        preview = preview_pending_message("ORD-5001")

        assert preview.message is None
        assert not get_in_flight().is_in_flight("ORD-5001")
