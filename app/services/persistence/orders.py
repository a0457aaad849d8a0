"""Order persistence service."""
import logging
import math
from datetime import date
from typing import List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError
from app.core.timezones import local_day_bounds
from app.db.database import atomic, bounded
from app.db.models import MenuItem, Order, OrderItem, utcnow
from app.services.dashboard.cache import StatsCache
from app.services.ordering.status import OrderStatus, parse_status, validate_transition

logger = logging.getLogger(__name__)


class OrderPersistenceService:
    """Service for reading orders and applying status changes."""

    def __init__(
        self,
        db: AsyncSession,
        timezone: str = "UTC",
        timeout: Optional[float] = None,
        stats_cache: Optional[StatsCache] = None,
    ):
        self.db = db
        self.tz = ZoneInfo(timezone)
        self.timeout = timeout
        self.stats_cache = stats_cache

    def _order_query(self):
        return select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.menu_item).selectinload(MenuItem.ingredients),
            selectinload(Order.delivery_area),
        )

    async def get_order_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID with items, menu items and delivery area."""
        result = await bounded(
            self.db.execute(
                self._order_query()
                .where(Order.id == order_id)
                .execution_options(populate_existing=True)
            ),
            self.timeout,
        )
        return result.scalar_one_or_none()

    async def require_order(self, order_id: int) -> Order:
        """Get order by ID or raise NotFoundError."""
        order = await self.get_order_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def list_orders(
        self,
        status: Optional[Union[str, OrderStatus]] = None,
        day: Optional[date] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Order], int, int]:
        """
        List orders newest first.

        Args:
            status: Only orders in this status, regardless of date
            day: Only orders created on this local business day
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (orders on the page, total matching orders, total pages)
        """
        conditions = []
        if status is not None:
            conditions.append(Order.status == parse_status(status).value)
        if day is not None:
            start, end = local_day_bounds(day, self.tz)
            conditions.append(Order.created_at >= start)
            conditions.append(Order.created_at < end)

        total = await bounded(
            self.db.scalar(select(func.count(Order.id)).where(*conditions)),
            self.timeout,
        )
        result = await bounded(
            self.db.execute(
                self._order_query()
                .where(*conditions)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ),
            self.timeout,
        )
        orders = list(result.scalars().all())
        total_pages = math.ceil(total / limit) if limit else 0
        return orders, total, total_pages

    async def set_status(self, order_id: int, new_status: Union[str, OrderStatus]) -> Order:
        """
        Move an order to ``new_status`` following the status machine.

        Raises:
            InvalidStatusError: if ``new_status`` is not a known status
            NotFoundError: if the order does not exist
            InvalidStatusTransitionError: if the transition is not allowed
        """
        target = parse_status(new_status)
        async with atomic(self.db, self.timeout):
            order = await self.require_order(order_id)
            previous = order.status
            validate_transition(previous, target)
            order.status = target.value
            order.updated_at = utcnow()
        logger.info(f"[ORDERS] Order {order.order_number} status: {previous} -> {target.value}")
        self._invalidate_stats()
        return await self.require_order(order_id)

    async def cancel_order(self, order_id: int) -> Order:
        """Cancel an order. Cancelled orders stay stored and keep their number."""
        return await self.set_status(order_id, OrderStatus.CANCELLED)

    async def purge_order(self, order_id: int) -> None:
        """Hard-delete an order and its items. The order number is never reissued."""
        async with atomic(self.db, self.timeout):
            order = await self.require_order(order_id)
            order_number = order.order_number
            await bounded(self.db.delete(order), self.timeout)
        logger.info(f"[ORDERS] Order {order_number} purged")
        self._invalidate_stats()

    def _invalidate_stats(self) -> None:
        if self.stats_cache is not None:
            self.stats_cache.invalidate()
