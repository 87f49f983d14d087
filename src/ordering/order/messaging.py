"""Notification dispatch flow: select, render, send, commit.

    pending_intent → selection (no side effects)
    preview → selection + rendered text, order marked in flight
    send → under the order lock:
        select intent (or take the operator's explicit one)
        validation failure        → ErrorMissingCN / ErrorMissingData, no send
        template missing, no text → ErrorMissingData, no send
        phone not normalizable    → ErrorMissingData, no send
        sender call (bounded by sender_timeout_seconds)
        result → lifecycle mutator → saved

Provider failures, exceptions and timeouts all end as ErrorSendingFailed
with the error text in the history entry. Nothing is retried automatically.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import structlog

from notifications.channel import get_sender
from notifications.channel.phone import normalize_phone_number
from notifications.channel.port import NotificationSender, SendResult
from notifications.notification.intent import MessageIntent
from notifications.templates import get_template_store
from notifications.templates.placeholders import render
from notifications.templates.resolver import resolve
from notifications.templates.store import TemplateStore
from ordering.order.lifecycle import SEND_ERROR_ACTOR, apply_notification_result, record_validation_failure
from ordering.order.locks import get_in_flight, order_lock
from ordering.order.order import ArchivedOrderError, MessageStatus, Order
from ordering.order.repository import get_repository
from ordering.order.selection import IntentSelection, select_intent
from shared.config import Settings, get_settings

logger = structlog.get_logger(__name__)

EXCEPTION_ACTOR = "System: Exception"

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="sender")


class DispatchStatus(Enum):
    SENT = "sent"
    FAILED = "failed"
    VALIDATION_FAILED = "validation_failed"
    NOTHING_PENDING = "nothing_pending"


@dataclass(frozen=True)
class PreparedMessage:
    intent: MessageIntent
    display_name: str
    text: str
    template_missing: bool = False


@dataclass(frozen=True)
class MessagePreview:
    order_id: str
    selection: IntentSelection
    message: PreparedMessage | None = None


@dataclass(frozen=True)
class DispatchOutcome:
    order_id: str
    status: DispatchStatus
    intent: MessageIntent | None = None
    detail: str = ""
    order: Order | None = None


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------
def prepare_message(
    order: Order,
    intent: MessageIntent,
    store: TemplateStore | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> PreparedMessage:
    """Resolve and render the message for ``intent``.

    A missing template yields the inline error text with ``template_missing`` set.
    """
    store = store or get_template_store()
    resolved = resolve(intent, store.overrides())
    if resolved.is_missing:
        return PreparedMessage(
            intent=intent,
            display_name=resolved.display_name,
            text=resolved.template,
            template_missing=True,
        )

    return PreparedMessage(
        intent=intent,
        display_name=resolved.display_name,
        text=render(resolved.template, order, settings or get_settings(), now),
    )


def send_with_timeout(
    sender: NotificationSender, phone_number: str, text: str, timeout: float
) -> tuple[SendResult, bool]:
    """Call the sender in a worker thread.

    Returns:
        (result, raised) where ``raised`` is True when the call timed out or
        threw instead of returning a result.
    """
    future = _executor.submit(sender.send, phone_number, text)
    try:
        return future.result(timeout=timeout), False
    except FuturesTimeoutError:
        future.cancel()
        logger.warning("Sender call timed out", to=phone_number, timeout_seconds=timeout)
        return SendResult(succeeded=False, error=f"Sender timed out after {timeout:g}s"), True
    except Exception as e:
        logger.exception("Sender call raised", to=phone_number)
        return SendResult(succeeded=False, error=str(e) or e.__class__.__name__), True


# ---------------------------------------------------------------------------
# Application services
# ---------------------------------------------------------------------------
def pending_intent(order_id: str) -> IntentSelection:
    """Which message is the stored order due for? No side effects."""
    return select_intent(get_repository().load_order(order_id))


def preview_pending_message(order_id: str, now: datetime | None = None) -> MessagePreview:
    """Render the pending message for review and mark the order in flight."""
    order = get_repository().load_order(order_id)
    selection = select_intent(order)
    if selection.intent is None:
        return MessagePreview(order_id=order_id, selection=selection)

    get_in_flight().mark(order_id)
    message = prepare_message(order, selection.intent, now=now)
    return MessagePreview(order_id=order_id, selection=selection, message=message)


def discard_pending_message(order_id: str) -> None:
    """Close a preview without sending; committed history is untouched."""
    get_in_flight().clear(order_id)


def send_pending_notification(
    order_id: str,
    actor: str | None = None,
    intent: MessageIntent | None = None,
    text: str | None = None,
    now: datetime | None = None,
) -> DispatchOutcome:
    """Run the full dispatch flow for one stored order.

    Args:
        actor: Recorded in the history entry (defaults to the template name).
        intent: Operator-chosen intent; the selector decides when omitted.
        text: Operator-edited text used instead of the rendered template.

    Raises:
        ObjectNotFoundError: if the order does not exist.
        ArchivedOrderError: if the order is archived.
    """
    repo = get_repository()
    in_flight = get_in_flight()

    with order_lock(order_id):
        in_flight.mark(order_id)
        try:
            order = repo.load_order(order_id)
            if order.is_archived:
                raise ArchivedOrderError(order_id)

            outcome = _dispatch(order, actor=actor, intent=intent, text=text, now=now)
            if outcome.order is not None and outcome.order is not order:
                repo.save_order(outcome.order)
            return outcome
        finally:
            in_flight.clear(order_id)


def _blocked(
    order: Order, error_status: MessageStatus, reason: str, intent: MessageIntent | None, now: datetime | None
) -> DispatchOutcome:
    updated = record_validation_failure(order, error_status, reason, now=now)
    return DispatchOutcome(
        order_id=order.id,
        status=DispatchStatus.VALIDATION_FAILED,
        intent=intent,
        detail=reason,
        order=updated,
    )


def _dispatch(
    order: Order,
    actor: str | None,
    intent: MessageIntent | None,
    text: str | None,
    now: datetime | None,
) -> DispatchOutcome:
    settings = get_settings()

    if intent is None:
        selection = select_intent(order)
        if selection.is_validation_failure:
            return _blocked(order, selection.validation_error, selection.reason, None, now)
        if selection.intent is None:
            return DispatchOutcome(
                order_id=order.id,
                status=DispatchStatus.NOTHING_PENDING,
                detail=selection.reason,
                order=order,
            )
        intent = selection.intent
    elif intent == MessageIntent.DISPATCH_NOTIFICATION and not order.tracking_number:
        return _blocked(
            order,
            MessageStatus.ERROR_MISSING_CN,
            "Tracking number is required before the dispatch message can be sent.",
            intent,
            now,
        )

    if text is not None and text.strip():
        message_text = text
    else:
        prepared = prepare_message(order, intent, settings=settings, now=now)
        if prepared.template_missing:
            return _blocked(order, MessageStatus.ERROR_MISSING_DATA, prepared.text, intent, now)
        message_text = prepared.text

    try:
        phone_number = normalize_phone_number(order.phone_number, settings.default_country_code)
    except ValueError as e:
        return _blocked(order, MessageStatus.ERROR_MISSING_DATA, str(e), intent, now)

    result, raised = send_with_timeout(get_sender(), phone_number, message_text, settings.sender_timeout_seconds)
    updated = apply_notification_result(
        order,
        intent,
        message_text,
        send_succeeded=result.succeeded,
        actor=actor,
        failure_reason=result.error,
        failure_actor=EXCEPTION_ACTOR if raised else SEND_ERROR_ACTOR,
        now=now,
    )

    if result.succeeded:
        logger.info("Notification sent", order_id=order.id, intent=intent.value, to=phone_number)
        return DispatchOutcome(order_id=order.id, status=DispatchStatus.SENT, intent=intent, order=updated)

    return DispatchOutcome(
        order_id=order.id,
        status=DispatchStatus.FAILED,
        intent=intent,
        detail=result.error or "",
        order=updated,
    )
