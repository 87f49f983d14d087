"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
Order aggregate and its value objects.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from notifications.notification.intent import MessageIntent
from ordering.order.order import AppStatus


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class SendMessageRequest(BaseModel):
    intent: MessageIntent | None = Field(
        default=None,
        description="Message to send; the pending intent is used when omitted",
    )
    text: str | None = Field(default=None, description="Operator-edited text replacing the rendered template")
    actor: str | None = Field(default=None, examples=["User: Template (DispatchNotification)"])


class ActorRequest(BaseModel):
    actor: str | None = None


class AssignTrackingRequest(BaseModel):
    tracking_number: str = Field(..., min_length=1, examples=["TCS123456789"])
    actor: str = "User: Tracking Assignment"


class BulkStatusRequest(BaseModel):
    order_ids: list[str] = Field(..., min_length=1)
    new_status: AppStatus
    actor: str = "User: Change Status"


class BulkArchiveRequest(BaseModel):
    order_ids: list[str] = Field(..., min_length=1)
    actor: str = "User: Bulk Archive"


class BulkSendRequest(BaseModel):
    order_ids: list[str] = Field(..., min_length=1)
    actor: str | None = Field(default=None, description="Recorded on each send; defaults to the template name")


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class OrderStateResponse(BaseModel):
    order_id: str
    app_status: str
    message_status: str
    tracking_number: str | None = None
    latest_courier_status: str | None = None


class PendingIntentResponse(BaseModel):
    order_id: str
    intent: str | None = None
    validation_error: str | None = None
    reason: str = ""
    rule: str | None = None


class MessagePreviewResponse(PendingIntentResponse):
    display_name: str | None = None
    text: str | None = None
    template_missing: bool = False


class DispatchOutcomeResponse(BaseModel):
    order_id: str
    status: str
    intent: str | None = None
    detail: str = ""
    app_status: str | None = None
    message_status: str | None = None


class HistoryEntryResponse(BaseModel):
    timestamp: datetime
    action: str
    content_snippet: str
    actor: str
    intent: str | None = None
    detail: str | None = None


class HistoryResponse(BaseModel):
    order_id: str
    entries: list[HistoryEntryResponse]


class BulkResultResponse(BaseModel):
    updated: list[str]
    skipped: list[str]


class BulkSendResponse(BaseModel):
    outcomes: list[DispatchOutcomeResponse]
    skipped: list[str]


class ReminderScanResponse(BaseModel):
    attempted: int
    sent: int


class StatusResponse(BaseModel):
    status: str = "ok"
