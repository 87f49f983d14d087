"""FastAPI routes for the Ordering domain.

Thin adapters that translate HTTP requests into application service calls.
No business logic: just schema → service → response translation.
"""

from fastapi import APIRouter

from ordering.api.schemas import (
    ActorRequest,
    AssignTrackingRequest,
    BulkArchiveRequest,
    BulkResultResponse,
    BulkSendRequest,
    BulkSendResponse,
    BulkStatusRequest,
    DispatchOutcomeResponse,
    HistoryEntryResponse,
    HistoryResponse,
    MessagePreviewResponse,
    OrderStateResponse,
    PendingIntentResponse,
    ReminderScanResponse,
    SendMessageRequest,
    StatusResponse,
)
from ordering.order.confirmation import confirm_order
from ordering.order.messaging import (
    DispatchOutcome,
    DispatchStatus,
    discard_pending_message,
    pending_intent,
    preview_pending_message,
    send_pending_notification,
)
from ordering.order.order import Order
from ordering.order.override import (
    BulkTransitionResult,
    archive_orders,
    cancel_order,
    change_status,
    send_pending_notifications,
)
from ordering.order.reminders import scan_confirmation_reminders
from ordering.order.repository import get_repository
from ordering.order.selection import IntentSelection
from ordering.order.tracking import set_tracking_number

router = APIRouter(prefix="/orders", tags=["orders"])


def _state(order: Order) -> OrderStateResponse:
    return OrderStateResponse(
        order_id=order.id,
        app_status=order.app_status.value,
        message_status=order.message_status.value,
        tracking_number=order.tracking_number,
        latest_courier_status=order.latest_courier_status,
    )


def _selection_fields(order_id: str, selection: IntentSelection) -> dict:
    return {
        "order_id": order_id,
        "intent": selection.intent.value if selection.intent else None,
        "validation_error": selection.validation_error.value if selection.validation_error else None,
        "reason": selection.reason,
        "rule": selection.rule,
    }


def _outcome(outcome: DispatchOutcome) -> DispatchOutcomeResponse:
    return DispatchOutcomeResponse(
        order_id=outcome.order_id,
        status=outcome.status.value,
        intent=outcome.intent.value if outcome.intent else None,
        detail=outcome.detail,
        app_status=outcome.order.app_status.value if outcome.order else None,
        message_status=outcome.order.message_status.value if outcome.order else None,
    )


def _bulk(result: BulkTransitionResult) -> BulkResultResponse:
    return BulkResultResponse(updated=[order.id for order in result.updated], skipped=result.skipped)


# ---------------------------------------------------------------------------
# Bulk operations (declared before /{order_id} routes)
# ---------------------------------------------------------------------------
@router.post("/bulk/status", response_model=BulkResultResponse)
def bulk_change_status(body: BulkStatusRequest) -> BulkResultResponse:
    """Force a status onto many orders, bypassing the intent selector."""
    return _bulk(change_status(body.order_ids, body.new_status, body.actor))


@router.post("/bulk/archive", response_model=BulkResultResponse)
def bulk_archive(body: BulkArchiveRequest) -> BulkResultResponse:
    return _bulk(archive_orders(body.order_ids, body.actor))


@router.post("/bulk/send", response_model=BulkSendResponse)
def bulk_send(body: BulkSendRequest) -> BulkSendResponse:
    """Send the pending message of every selected order."""
    result = send_pending_notifications(body.order_ids, body.actor)
    return BulkSendResponse(outcomes=[_outcome(outcome) for outcome in result.outcomes], skipped=result.skipped)


@router.post("/reminders/scan", response_model=ReminderScanResponse)
def scan_reminders() -> ReminderScanResponse:
    """Send confirmation reminders that are due now."""
    outcomes = scan_confirmation_reminders()
    return ReminderScanResponse(
        attempted=len(outcomes),
        sent=sum(1 for outcome in outcomes if outcome.status == DispatchStatus.SENT),
    )


# ---------------------------------------------------------------------------
# Single-order queries
# ---------------------------------------------------------------------------
@router.get("/{order_id}", response_model=OrderStateResponse)
async def get_order_state(order_id: str) -> OrderStateResponse:
    return _state(get_repository().load_order(order_id))


@router.get("/{order_id}/pending-intent", response_model=PendingIntentResponse)
async def get_pending_intent(order_id: str) -> PendingIntentResponse:
    """Which message is this order due for? No side effects."""
    return PendingIntentResponse(**_selection_fields(order_id, pending_intent(order_id)))


@router.get("/{order_id}/history", response_model=HistoryResponse)
async def get_history(order_id: str) -> HistoryResponse:
    order = get_repository().load_order(order_id)
    return HistoryResponse(
        order_id=order.id,
        entries=[HistoryEntryResponse(**entry.model_dump()) for entry in order.message_history],
    )


# ---------------------------------------------------------------------------
# Messaging
# ---------------------------------------------------------------------------
@router.post("/{order_id}/messages/preview", response_model=MessagePreviewResponse)
def preview_message(order_id: str) -> MessagePreviewResponse:
    preview = preview_pending_message(order_id)
    message = preview.message
    return MessagePreviewResponse(
        **_selection_fields(order_id, preview.selection),
        display_name=message.display_name if message else None,
        text=message.text if message else None,
        template_missing=message.template_missing if message else False,
    )


@router.post("/{order_id}/messages/discard", response_model=StatusResponse)
async def discard_message(order_id: str) -> StatusResponse:
    discard_pending_message(order_id)
    return StatusResponse()


@router.post("/{order_id}/messages/send", response_model=DispatchOutcomeResponse)
def send_message(order_id: str, body: SendMessageRequest | None = None) -> DispatchOutcomeResponse:
    body = body or SendMessageRequest()
    outcome = send_pending_notification(order_id, actor=body.actor, intent=body.intent, text=body.text)
    return _outcome(outcome)


# ---------------------------------------------------------------------------
# Lifecycle actions
# ---------------------------------------------------------------------------
@router.post("/{order_id}/confirm", response_model=OrderStateResponse)
def confirm(order_id: str, body: ActorRequest | None = None) -> OrderStateResponse:
    actor = body.actor if body and body.actor else "User: Customer Confirmation"
    return _state(confirm_order(order_id, actor=actor))


@router.post("/{order_id}/tracking", response_model=OrderStateResponse)
def assign_tracking(order_id: str, body: AssignTrackingRequest) -> OrderStateResponse:
    return _state(set_tracking_number(order_id, body.tracking_number, actor=body.actor))


@router.post("/{order_id}/cancel", response_model=OrderStateResponse)
def cancel(order_id: str, body: ActorRequest | None = None) -> OrderStateResponse:
    actor = body.actor if body and body.actor else "User: Cancel Order"
    return _state(cancel_order(order_id, actor=actor))
