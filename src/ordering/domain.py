"""Ordering bounded context: order lifecycle and customer notifications.

Orders are immutable values (``ordering.order.order``). The domain persists
them through the ``OrderRecord`` aggregate and its repository; every other
module works with ``Order`` values only.
"""

import functools

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)


@functools.cache
def init_ordering() -> Domain:
    """Register the order store and initialize the domain, once per process."""
    from ordering.order import repository  # noqa: F401  registers OrderRecord and OrderRepository

    ordering.init(traverse=False)
    logger.info("Ordering domain initialized", name=ordering.name)
    return ordering
