"""Background runner for the two periodic loops.

- Courier polling: every ``polling_interval_seconds``, reconcile each
  trackable order (at most ``poll_concurrency`` at once, in worker threads).
- Confirmation reminders: every ``reminder_scan_interval_seconds``, send the
  reminders that are due.

The loops are independent; SIGINT/SIGTERM stop both after the current cycle.
Each worker thread pushes its own ordering domain context.

Usage:
    python src/server.py                     # Run both loops
    python src/server.py --loop polling      # Run only courier polling
    python src/server.py --loop reminders    # Run only reminder scanning
    python src/server.py --once              # Run one cycle of each and exit
"""

import argparse
import asyncio
import signal

import structlog

from fulfillment.courier.polling import PollOutcome, poll_order_safely, trackable_order_ids
from ordering.domain import init_ordering
from ordering.order.reminders import scan_confirmation_reminders
from shared.config import get_settings
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

LOOPS = ("polling", "reminders")


def _in_domain_context(func, *args):
    with init_ordering().domain_context():
        return func(*args)


async def poll_cycle(semaphore: asyncio.Semaphore) -> list[PollOutcome]:
    """Reconcile every trackable order once, bounded by ``semaphore``."""

    async def _poll(order_id: str) -> PollOutcome:
        async with semaphore:
            return await asyncio.to_thread(_in_domain_context, poll_order_safely, order_id)

    order_ids = await asyncio.to_thread(_in_domain_context, trackable_order_ids)
    outcomes = await asyncio.gather(*(_poll(order_id) for order_id in order_ids))
    logger.info(
        "Poll cycle finished",
        polled=len(outcomes),
        updated=sum(1 for outcome in outcomes if outcome.event is not None),
        errors=sum(1 for outcome in outcomes if outcome.error),
    )
    return list(outcomes)


async def reminder_cycle() -> None:
    await asyncio.to_thread(_in_domain_context, scan_confirmation_reminders)


async def _sleep_or_stop(shutdown_event: asyncio.Event, seconds: float) -> None:
    try:
        await asyncio.wait_for(shutdown_event.wait(), timeout=seconds)
    except TimeoutError:
        pass  # interval elapsed


async def run_polling_loop(shutdown_event: asyncio.Event) -> None:
    settings = get_settings()
    semaphore = asyncio.Semaphore(settings.poll_concurrency)
    logger.info(
        "Courier polling started",
        interval_seconds=settings.polling_interval_seconds,
        concurrency=settings.poll_concurrency,
    )
    with structlog.contextvars.bound_contextvars(loop="polling"):
        while not shutdown_event.is_set():
            try:
                await poll_cycle(semaphore)
            except Exception:
                logger.exception("Poll cycle failed")
            await _sleep_or_stop(shutdown_event, settings.polling_interval_seconds)
    logger.info("Courier polling stopped")


async def run_reminder_loop(shutdown_event: asyncio.Event) -> None:
    settings = get_settings()
    logger.info("Reminder scanning started", interval_seconds=settings.reminder_scan_interval_seconds)
    with structlog.contextvars.bound_contextvars(loop="reminders"):
        while not shutdown_event.is_set():
            try:
                await reminder_cycle()
            except Exception:
                logger.exception("Reminder scan failed")
            await _sleep_or_stop(shutdown_event, settings.reminder_scan_interval_seconds)
    logger.info("Reminder scanning stopped")


async def run(loop_names, shutdown_event: asyncio.Event) -> None:
    runners = {"polling": run_polling_loop, "reminders": run_reminder_loop}
    await asyncio.gather(*(runners[name](shutdown_event) for name in loop_names))


async def run_once(loop_names) -> None:
    if "polling" in loop_names:
        await poll_cycle(asyncio.Semaphore(get_settings().poll_concurrency))
    if "reminders" in loop_names:
        await reminder_cycle()


def main():
    parser = argparse.ArgumentParser(description="Dispatchline background runner")
    parser.add_argument("--loop", choices=LOOPS, help="Run a single loop (default: run all)")
    parser.add_argument("--once", action="store_true", help="Run one cycle of each loop and exit")
    args = parser.parse_args()

    configure_logging()
    init_ordering()
    loop_names = [args.loop] if args.loop else list(LOOPS)

    if args.once:
        asyncio.run(run_once(loop_names))
        return

    shutdown_event = asyncio.Event()
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)

    try:
        loop.run_until_complete(run(loop_names, shutdown_event))
    finally:
        loop.close()


if __name__ == "__main__":
    main()
