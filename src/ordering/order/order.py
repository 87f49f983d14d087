"""Order aggregate: the single source of truth for an order's lifecycle.

An Order is an immutable value. Every core operation takes an Order and
returns a new one; the previous value is never modified. Audit trails
(``message_history`` and ``courier_status_history``) are append-only tuples,
so entries already recorded stay identical across versions.

Application status (store and courier progress):
    PENDING_CONFIRMATION → PROCESSING → DISPATCHED → IN_TRANSIT →
    OUT_FOR_DELIVERY / ADDRESS_ISSUE → DELIVERED
    CANCELLED (operator action)
    ARCHIVED (bulk path only, absorbing)

Message status (customer notification progress for the current app status):
    PENDING → SENT / CONFIRMATION_SENT / NOTIFIED
    PENDING_CONFIRMATION + SENT/CONFIRMATION_SENT → CUSTOMER_CONFIRMED
    any send attempt → ERROR_SENDING_FAILED on transport failure
    validation failures → ERROR_MISSING_CN / ERROR_MISSING_DATA

A new application status resets the message status to PENDING: a fresh
notification is due for the new state.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

SNIPPET_MAX_LENGTH = 100
BOOTSTRAP_EVENT_ID = "booked"
BOOTSTRAP_STATUS_TEXT = "Booked"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class AppStatus(Enum):
    PENDING_CONFIRMATION = "PendingConfirmation"
    PROCESSING = "Processing"
    DISPATCHED = "Dispatched"
    IN_TRANSIT = "InTransit"
    OUT_FOR_DELIVERY = "OutForDelivery"
    ADDRESS_ISSUE = "AddressIssue"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    ARCHIVED = "Archived"


class MessageStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    CONFIRMATION_SENT = "ConfirmationSent"
    CUSTOMER_CONFIRMED = "CustomerConfirmed"
    NOTIFIED = "Notified"
    ERROR_MISSING_DATA = "ErrorMissingData"
    ERROR_SENDING_FAILED = "ErrorSendingFailed"
    ERROR_MISSING_CN = "ErrorMissingCN"


TERMINAL_STATUSES = frozenset({AppStatus.DELIVERED, AppStatus.CANCELLED, AppStatus.ARCHIVED})

ERROR_MESSAGE_STATUSES = frozenset(
    {
        MessageStatus.ERROR_MISSING_DATA,
        MessageStatus.ERROR_SENDING_FAILED,
        MessageStatus.ERROR_MISSING_CN,
    }
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ArchivedOrderError(ValidationError):
    """An operation tried to mutate an archived order."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"app_status": [f"Order {order_id} is archived and cannot be modified"]})


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int

    @field_validator("quantity")
    @classmethod
    def _quantity_must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Quantity must be greater than zero")
        return value


class CourierStatusEvent(BaseModel):
    """One immutable entry of the courier's tracking log.

    ``tracking_number`` is the shipment the event was read for; a history
    may span several shipments when the tracking number is reassigned.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    status_text: str
    event_id: str
    tracking_number: str | None = None

    @classmethod
    def create(
        cls,
        timestamp: datetime,
        status_text: str,
        event_id: str | None = None,
        tracking_number: str | None = None,
    ) -> "CourierStatusEvent":
        """Build an event, deriving the id from timestamp and text when absent."""
        return cls(
            timestamp=timestamp,
            status_text=status_text,
            event_id=event_id or f"{timestamp.isoformat()} - {status_text}",
            tracking_number=tracking_number,
        )

    @classmethod
    def bootstrap(cls, timestamp: datetime, tracking_number: str | None = None) -> "CourierStatusEvent":
        """Synthetic first event recorded when tracking of a shipment starts."""
        return cls(
            timestamp=timestamp,
            status_text=BOOTSTRAP_STATUS_TEXT,
            event_id=BOOTSTRAP_EVENT_ID,
            tracking_number=tracking_number,
        )


class HistoryEntry(BaseModel):
    """One immutable audit-trail entry."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    action: str
    content_snippet: str
    actor: str
    intent: str | None = None
    detail: str | None = None  # untruncated error text of a failed attempt

    @classmethod
    def record(
        cls,
        action: str,
        content: str,
        actor: str,
        timestamp: datetime | None = None,
        intent: str | None = None,
        detail: str | None = None,
    ) -> "HistoryEntry":
        return cls(
            timestamp=timestamp or _utcnow(),
            action=action,
            content_snippet=truncate_snippet(content),
            actor=actor,
            intent=intent,
            detail=detail,
        )


def truncate_snippet(content: str) -> str:
    if len(content) > SNIPPET_MAX_LENGTH:
        return content[:SNIPPET_MAX_LENGTH] + "..."
    return content


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))

    # Customer and shipping data, never modified by the core
    customer_name: str
    phone_number: str
    address: str = ""
    city: str = ""
    items: tuple[OrderItem, ...] = ()
    price: Decimal = Decimal("0")
    currency_symbol: str = "PKR"
    payment_method: str = "COD"
    delivery_method: str = "TCS"
    order_timestamp: datetime = Field(default_factory=_utcnow)

    # Lifecycle
    app_status: AppStatus = AppStatus.PENDING_CONFIRMATION
    message_status: MessageStatus = MessageStatus.PENDING
    message_sent_at: datetime | None = None
    message_status_before_failure: MessageStatus | None = None

    # Courier tracking
    tracking_number: str | None = None
    courier_status_history: tuple[CourierStatusEvent, ...] = ()
    latest_courier_status: str | None = None
    last_notified_status_text: str | None = None

    # One-shot flags, never reset for the lifetime of the order
    out_for_delivery_notified: bool = False
    address_issue_notified: bool = False

    message_history: tuple[HistoryEntry, ...] = ()

    @classmethod
    def create(cls, actor: str = "User: Order Form", now: datetime | None = None, **data) -> "Order":
        """Create a new order awaiting customer confirmation.

        Raises:
            ValidationError: if any field is malformed (e.g. an item quantity <= 0).
        """
        now = now or _utcnow()
        data.setdefault("order_timestamp", now)
        try:
            order = cls(**data)
        except PydanticValidationError as exc:
            raise ValidationError(_messages_from(exc)) from exc

        entry = HistoryEntry.record(
            action="Order Created",
            content=f"Order {order.id} created for {order.customer_name}.",
            actor=actor,
            timestamp=now,
        )
        return order.model_copy(
            update={
                "app_status": AppStatus.PENDING_CONFIRMATION,
                "message_status": MessageStatus.PENDING,
                "message_history": (entry,),
            }
        )

    @property
    def is_archived(self) -> bool:
        return self.app_status == AppStatus.ARCHIVED

    @property
    def is_terminal(self) -> bool:
        return self.app_status in TERMINAL_STATUSES

    @property
    def last_courier_event(self) -> CourierStatusEvent | None:
        return self.courier_status_history[-1] if self.courier_status_history else None

    def evolve(self, entry: HistoryEntry | None = None, **changes) -> "Order":
        """Return a new Order with ``changes`` applied and ``entry`` appended to the history."""
        if entry is not None:
            changes["message_history"] = self.message_history + (entry,)
        return self.model_copy(update=changes)


def _messages_from(exc: PydanticValidationError) -> dict[str, list[str]]:
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "order"
        messages.setdefault(field, []).append(error["msg"])
    return messages
