"""Bulk and manual status override: the operator's escape hatch.

Sets the application status directly, bypassing the intent selector. The
message status is reset so the follow-up notification is right for the new
state:

    Dispatched / OutForDelivery / AddressIssue / Cancelled → Pending (a message is due)
    anything else                                          → Notified (nothing to send)

Archived orders are skipped; no operation moves an order out of Archived.

Bulk send runs the normal dispatch flow for each selected order whose
message is Pending (or ErrorSendingFailed, which is offered again).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError

from ordering.order.locks import order_lock
from ordering.order.messaging import DispatchOutcome, send_pending_notification
from ordering.order.order import AppStatus, ArchivedOrderError, HistoryEntry, MessageStatus, Order
from ordering.order.repository import get_repository

logger = structlog.get_logger(__name__)

_NOTIFY_AFTER_OVERRIDE = frozenset(
    {
        AppStatus.DISPATCHED,
        AppStatus.OUT_FOR_DELIVERY,
        AppStatus.ADDRESS_ISSUE,
        AppStatus.CANCELLED,
    }
)

_BULK_SENDABLE = frozenset({MessageStatus.PENDING, MessageStatus.ERROR_SENDING_FAILED})


@dataclass
class BulkTransitionResult:
    updated: list[Order] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class BulkSendResult:
    outcomes: list[DispatchOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def message_status_after_override(new_status: AppStatus) -> MessageStatus:
    return MessageStatus.PENDING if new_status in _NOTIFY_AFTER_OVERRIDE else MessageStatus.NOTIFIED


def force_status(order: Order, new_status: AppStatus, actor: str, now: datetime | None = None) -> Order | None:
    """Override one order's status; None when the order is archived."""
    if order.is_archived:
        logger.info("Skipping archived order", order_id=order.id, requested_status=new_status.value)
        return None

    old_status = order.app_status
    entry = HistoryEntry.record(
        action=f"{actor}: Bulk status change to {new_status.value}",
        content=f"Order status changed from {old_status.value} to {new_status.value}.",
        actor=actor,
        timestamp=now or datetime.now(UTC),
    )
    return order.evolve(
        entry,
        app_status=new_status,
        message_status=message_status_after_override(new_status),
        message_status_before_failure=None,
    )


def force_transition(
    orders: Iterable[Order],
    new_status: AppStatus,
    actor: str,
    now: datetime | None = None,
) -> BulkTransitionResult:
    """Override the status of every order; archived ones are reported in ``skipped``."""
    now = now or datetime.now(UTC)
    result = BulkTransitionResult()
    for order in orders:
        updated = force_status(order, new_status, actor, now)
        if updated is None:
            result.skipped.append(order.id)
        else:
            result.updated.append(updated)
    return result


def archive(orders: Iterable[Order], actor: str, now: datetime | None = None) -> BulkTransitionResult:
    return force_transition(orders, AppStatus.ARCHIVED, actor, now)


# ---------------------------------------------------------------------------
# Application services (load, lock, transition, save)
# ---------------------------------------------------------------------------
def change_status(order_ids: Iterable[str], new_status: AppStatus, actor: str) -> BulkTransitionResult:
    """Override the status of stored orders by id.

    Unknown ids are reported in ``skipped`` alongside archived orders.
    """
    repo = get_repository()
    now = datetime.now(UTC)
    result = BulkTransitionResult()

    for order_id in order_ids:
        with order_lock(order_id):
            try:
                order = repo.load_order(order_id)
            except ObjectNotFoundError:
                logger.warning("Order not found for status change", order_id=order_id)
                result.skipped.append(order_id)
                continue

            updated = force_status(order, new_status, actor, now)
            if updated is None:
                result.skipped.append(order_id)
                continue
            repo.save_order(updated)
            result.updated.append(updated)

    logger.info(
        "Bulk status change applied",
        new_status=new_status.value,
        actor=actor,
        updated=len(result.updated),
        skipped=len(result.skipped),
    )
    return result


def archive_orders(order_ids: Iterable[str], actor: str) -> BulkTransitionResult:
    return change_status(order_ids, AppStatus.ARCHIVED, actor)


def send_pending_notifications(order_ids: Iterable[str], actor: str | None = None) -> BulkSendResult:
    """Send the pending message of every selected order.

    Unknown and archived orders, and orders with no message waiting, are
    reported in ``skipped``. A failed send does not stop the batch.
    """
    repo = get_repository()
    result = BulkSendResult()

    for order_id in order_ids:
        with order_lock(order_id):
            try:
                order = repo.load_order(order_id)
            except ObjectNotFoundError:
                logger.warning("Order not found for bulk send", order_id=order_id)
                result.skipped.append(order_id)
                continue

            if order.is_archived or order.message_status not in _BULK_SENDABLE:
                result.skipped.append(order_id)
                continue
            result.outcomes.append(send_pending_notification(order_id, actor=actor))

    logger.info(
        "Bulk send finished",
        actor=actor,
        attempted=len(result.outcomes),
        skipped=len(result.skipped),
    )
    return result


def cancel_order(order_id: str, actor: str = "User: Cancel Order") -> Order:
    """Cancel a single stored order; a cancellation notice becomes due.

    Raises:
        ObjectNotFoundError: if the order does not exist.
        ArchivedOrderError: if the order is archived.
    """
    repo = get_repository()
    with order_lock(order_id):
        order = repo.load_order(order_id)
        if order.is_archived:
            raise ArchivedOrderError(order_id)

        entry = HistoryEntry.record(
            action="Order Cancelled",
            content=f"Order status changed from {order.app_status.value} to {AppStatus.CANCELLED.value}.",
            actor=actor,
        )
        cancelled = order.evolve(
            entry,
            app_status=AppStatus.CANCELLED,
            message_status=MessageStatus.PENDING,
            message_status_before_failure=None,
        )
        repo.save_order(cancelled)

    logger.info("Order cancelled", order_id=order_id, actor=actor)
    return cancelled
