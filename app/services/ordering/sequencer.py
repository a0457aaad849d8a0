"""Order number sequencing."""
import logging
import re
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DataIntegrityError
from app.db.database import bounded
from app.db.models import Order, OrderCounter

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "PED"
ORDER_NUMBER_WIDTH = 4
ORDER_NUMBER_PATTERN = re.compile(rf"^{ORDER_NUMBER_PREFIX}(\d+)$")


def format_order_number(value: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{value:0{ORDER_NUMBER_WIDTH}d}"


def parse_order_number(order_number: str) -> int:
    """Numeric suffix of an order number such as ``PED0042``."""
    match = ORDER_NUMBER_PATTERN.match(order_number or "")
    if not match:
        raise DataIntegrityError(
            f"Stored order number '{order_number}' does not match {ORDER_NUMBER_PREFIX}####"
        )
    return int(match.group(1))


def next_order_number(last_issued: Optional[str]) -> str:
    """
    Order number that follows ``last_issued``.

    Args:
        last_issued: Most recently issued order number, or None if there is none

    Returns:
        ``PED0001`` for the first order, otherwise the incremented number

    Raises:
        DataIntegrityError: if ``last_issued`` is not a well-formed order number
    """
    if last_issued is None:
        return format_order_number(1)
    return format_order_number(parse_order_number(last_issued) + 1)


class OrderSequencer:
    """Allocates order numbers from a counter row inside the caller's transaction."""

    COUNTER_NAME = "orders"

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    async def allocate(self) -> str:
        """
        Reserve the next order number.

        The increment is a single UPDATE on the counter row, so the row stays
        locked until the surrounding transaction ends and concurrent callers
        cannot read the same value. Must run inside ``atomic``.
        """
        result = await bounded(
            self.db.execute(
                update(OrderCounter)
                .where(OrderCounter.name == self.COUNTER_NAME)
                .values(last_value=OrderCounter.last_value + 1)
                .execution_options(synchronize_session=False)
            ),
            self.timeout,
        )
        if result.rowcount == 0:
            return await self._seed_counter()

        value = await bounded(
            self.db.scalar(
                select(OrderCounter.last_value).where(OrderCounter.name == self.COUNTER_NAME)
            ),
            self.timeout,
        )
        return format_order_number(value)

    async def _seed_counter(self) -> str:
        """Create the counter row, continuing from the newest stored order."""
        last_issued = await bounded(
            self.db.scalar(
                select(Order.order_number)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(1)
            ),
            self.timeout,
        )
        order_number = next_order_number(last_issued)
        logger.info(f"[SEQUENCER] Seeding order counter - last issued: {last_issued}")
        self.db.add(OrderCounter(name=self.COUNTER_NAME, last_value=parse_order_number(order_number)))
        await bounded(self.db.flush(), self.timeout)
        return order_number
