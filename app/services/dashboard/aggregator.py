"""Dashboard statistics aggregation."""
import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar, Union
from zoneinfo import ZoneInfo

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StoreError, ValidationError
from app.core.timezones import local_day_bounds, to_local, to_naive_utc
from app.db.database import bounded
from app.db.models import Order, OrderItem
from app.services.dashboard.models import (
    DashboardStats,
    GeneralStats,
    GroupBy,
    RecentOrderSummary,
    SalesBucket,
    TodayStats,
    TopItem,
)
from app.services.ordering.status import OrderStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOP_ITEMS_LIMIT = 5
TOP_ITEMS_WINDOW = timedelta(days=30)
RECENT_ORDERS_LIMIT = 10

CANCELLED = OrderStatus.CANCELLED.value


class DashboardAggregator:
    """Computes dashboard statistics from the order history."""

    def __init__(
        self,
        db: AsyncSession,
        timezone: str = "UTC",
        website_url: str = "",
        timeout: Optional[float] = None,
    ):
        self.db = db
        self.tz = ZoneInfo(timezone)
        self.website_url = website_url
        self.timeout = timeout

    def cache_key(self, as_of: datetime) -> str:
        """Stats computed for the same local business day share a cache entry."""
        return to_local(as_of, self.tz).date().isoformat()

    async def compute_stats(self, as_of: Optional[datetime] = None) -> DashboardStats:
        """
        Compute every dashboard section as of ``as_of`` (default: now).

        Each section is queried separately. A section whose query fails is
        logged, filled with its default and listed in ``unavailable``; the
        other sections are still returned.
        """
        as_of = as_of or datetime.now(self.tz)
        day_start, day_end = local_day_bounds(to_local(as_of, self.tz).date(), self.tz)
        as_of_utc = to_naive_utc(as_of)
        unavailable: List[str] = []

        today_stats = await self._degrade(
            "todayStats", TodayStats(), lambda: self._today_stats(day_start, day_end), unavailable
        )
        general_stats = await self._degrade(
            "generalStats", GeneralStats(), self._general_stats, unavailable
        )
        top_items = await self._degrade(
            "topItems", [], lambda: self._top_items(as_of_utc), unavailable
        )
        orders_by_status = await self._degrade(
            "ordersByStatus", self._zero_status_counts(), self._orders_by_status, unavailable
        )
        recent_orders = await self._degrade(
            "recentOrders", [], lambda: self._recent_orders(day_start, day_end), unavailable
        )

        return DashboardStats(
            today_stats=today_stats,
            general_stats=general_stats,
            top_items=top_items,
            orders_by_status=orders_by_status,
            recent_orders=recent_orders,
            website_url=self.website_url,
            unavailable=unavailable,
        )

    async def sales_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        group_by: Union[str, GroupBy] = GroupBy.DAY,
    ) -> List[SalesBucket]:
        """
        Order count and revenue of non-cancelled orders per local day or month.

        Args:
            start_date: First local day included, or None for no lower bound
            end_date: Last local day included, or None for no upper bound
            group_by: ``day`` or ``month``

        Returns:
            Buckets in ascending period order; periods without orders are omitted
        """
        try:
            grouping = GroupBy(group_by)
        except ValueError:
            raise ValidationError(f"Invalid groupBy '{group_by}'. Allowed values: day, month")
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")

        conditions = [Order.status != CANCELLED]
        if start_date:
            conditions.append(Order.created_at >= local_day_bounds(start_date, self.tz)[0])
        if end_date:
            conditions.append(Order.created_at < local_day_bounds(end_date, self.tz)[1])

        result = await bounded(
            self.db.execute(
                select(Order.created_at, Order.total).where(*conditions).order_by(Order.created_at)
            ),
            self.timeout,
        )
        period_format = "%Y-%m-%d" if grouping == GroupBy.DAY else "%Y-%m"
        buckets: Dict[str, SalesBucket] = {}
        for created_at, total in result.all():
            period = to_local(created_at, self.tz).strftime(period_format)
            bucket = buckets.setdefault(period, SalesBucket(period=period))
            bucket.orders += 1
            bucket.revenue = round(bucket.revenue + total, 2)
        return [buckets[period] for period in sorted(buckets)]

    async def _degrade(
        self,
        section: str,
        default: T,
        compute: Callable[[], Awaitable[T]],
        unavailable: List[str],
    ) -> T:
        try:
            return await compute()
        except (SQLAlchemyError, StoreError) as e:
            logger.error(
                f"[DASHBOARD] {section} unavailable - Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            await self.db.rollback()
            unavailable.append(section)
            return default

    async def _today_stats(self, day_start: datetime, day_end: datetime) -> TodayStats:
        row = (
            await bounded(
                self.db.execute(
                    select(func.count(Order.id), func.coalesce(func.sum(Order.total), 0.0)).where(
                        Order.created_at >= day_start,
                        Order.created_at < day_end,
                        Order.status != CANCELLED,
                    )
                ),
                self.timeout,
            )
        ).one()
        orders, revenue = int(row[0]), float(row[1])
        return TodayStats(
            orders=orders,
            revenue=round(revenue, 2),
            average_order_value=round(revenue / orders, 2) if orders else 0.0,
        )

    async def _general_stats(self) -> GeneralStats:
        not_cancelled_total = case((Order.status != CANCELLED, Order.total), else_=0.0)
        row = (
            await bounded(
                self.db.execute(
                    select(
                        func.count(Order.id),
                        func.coalesce(func.sum(not_cancelled_total), 0.0),
                        func.coalesce(func.sum(case((Order.status == OrderStatus.PENDING.value, 1), else_=0)), 0),
                        func.coalesce(func.sum(case((Order.status == OrderStatus.PREPARING.value, 1), else_=0)), 0),
                    )
                ),
                self.timeout,
            )
        ).one()
        return GeneralStats(
            total_orders=int(row[0]),
            total_revenue=round(float(row[1]), 2),
            pending_orders=int(row[2]),
            preparing_orders=int(row[3]),
        )

    async def _top_items(self, as_of_utc: datetime) -> List[TopItem]:
        quantity = func.sum(OrderItem.quantity)
        result = await bounded(
            self.db.execute(
                select(OrderItem.name, quantity, func.sum(OrderItem.subtotal))
                .join(Order, OrderItem.order_id == Order.id)
                .where(
                    Order.created_at >= as_of_utc - TOP_ITEMS_WINDOW,
                    Order.created_at <= as_of_utc,
                    Order.status != CANCELLED,
                )
                .group_by(OrderItem.name)
                .order_by(quantity.desc(), OrderItem.name.asc())
                .limit(TOP_ITEMS_LIMIT)
            ),
            self.timeout,
        )
        return [
            TopItem(name=name, quantity=int(qty), revenue=round(float(revenue), 2))
            for name, qty, revenue in result.all()
        ]

    async def _orders_by_status(self) -> Dict[str, int]:
        result = await bounded(
            self.db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status)),
            self.timeout,
        )
        counts = self._zero_status_counts()
        for status, count in result.all():
            if status in counts:
                counts[status] = int(count)
            else:
                logger.warning(f"[DASHBOARD] Ignoring {count} orders with unknown status '{status}'")
        return counts

    async def _recent_orders(self, day_start: datetime, day_end: datetime) -> List[RecentOrderSummary]:
        result = await bounded(
            self.db.execute(
                select(
                    Order.id,
                    Order.order_number,
                    Order.customer_name,
                    Order.total,
                    Order.status,
                    Order.created_at,
                )
                .where(Order.created_at >= day_start, Order.created_at < day_end)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(RECENT_ORDERS_LIMIT)
            ),
            self.timeout,
        )
        return [
            RecentOrderSummary(
                id=row.id,
                order_number=row.order_number,
                customer_name=row.customer_name,
                total=row.total,
                status=row.status,
                created_at=row.created_at,
            )
            for row in result.all()
        ]

    @staticmethod
    def _zero_status_counts() -> Dict[str, int]:
        return {status.value: 0 for status in OrderStatus}
