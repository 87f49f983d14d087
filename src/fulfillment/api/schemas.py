"""Pydantic response schemas for the courier polling API."""

from pydantic import BaseModel


class PollOutcomeResponse(BaseModel):
    order_id: str
    courier_status: str | None = None
    status_changed: bool = False
    notification: str | None = None
    error: str | None = None


class PollCycleResponse(BaseModel):
    polled: int
    updated: int
    outcomes: list[PollOutcomeResponse]
