"""Dashboard statistics models."""
from datetime import datetime
from enum import Enum
from typing import Dict, List

from app.core.schemas import CamelModel


class GroupBy(str, Enum):
    DAY = "day"
    MONTH = "month"


class TodayStats(CamelModel):
    orders: int = 0
    revenue: float = 0.0
    average_order_value: float = 0.0


class GeneralStats(CamelModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    pending_orders: int = 0
    preparing_orders: int = 0


class TopItem(CamelModel):
    """Best seller aggregated by the name captured on order lines."""

    name: str
    quantity: int
    revenue: float


class RecentOrderSummary(CamelModel):
    id: int
    order_number: str
    customer_name: str
    total: float
    status: str
    created_at: datetime


class DashboardStats(CamelModel):
    """
    Dashboard aggregates.

    ``unavailable`` names the sections that could not be computed; those
    sections hold their zero or empty defaults.
    """

    today_stats: TodayStats = TodayStats()
    general_stats: GeneralStats = GeneralStats()
    top_items: List[TopItem] = []
    orders_by_status: Dict[str, int] = {}
    recent_orders: List[RecentOrderSummary] = []
    website_url: str = ""
    unavailable: List[str] = []


class SalesBucket(CamelModel):
    period: str
    orders: int = 0
    revenue: float = 0.0
