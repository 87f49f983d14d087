"""FastAPI routes for on-demand courier polling.

The background runner polls on a schedule; these routes let an operator
trigger a cycle (or a single order) immediately.
"""

from fastapi import APIRouter

from fulfillment.api.schemas import PollCycleResponse, PollOutcomeResponse
from fulfillment.courier.polling import PollOutcome, poll_all, poll_order

router = APIRouter(prefix="/courier", tags=["courier"])


def _response(outcome: PollOutcome) -> PollOutcomeResponse:
    return PollOutcomeResponse(
        order_id=outcome.order_id,
        courier_status=outcome.event.status_text if outcome.event else None,
        status_changed=outcome.status_changed,
        notification=outcome.dispatch.status.value if outcome.dispatch else None,
        error=outcome.error,
    )


@router.post("/poll", response_model=PollCycleResponse)
def poll_courier_statuses() -> PollCycleResponse:
    """Run one polling cycle over every trackable order."""
    outcomes = poll_all()
    return PollCycleResponse(
        polled=len(outcomes),
        updated=sum(1 for outcome in outcomes if outcome.event is not None),
        outcomes=[_response(outcome) for outcome in outcomes],
    )


@router.post("/poll/{order_id}", response_model=PollOutcomeResponse)
def poll_single_order(order_id: str) -> PollOutcomeResponse:
    return _response(poll_order(order_id))
