"""Dashboard API endpoints."""
import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_dashboard_aggregator, get_stats_cache
from app.services.dashboard.aggregator import DashboardAggregator
from app.services.dashboard.cache import StatsCache
from app.services.dashboard.models import DashboardStats, SalesBucket

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    aggregator: DashboardAggregator = Depends(get_dashboard_aggregator),
    stats_cache: StatsCache = Depends(get_stats_cache),
):
    """Today's figures, overall figures, best sellers and recent orders."""
    now = datetime.now(aggregator.tz)
    cache_key = aggregator.cache_key(now)
    cached = stats_cache.get(cache_key)
    if cached is not None:
        logger.debug(f"[DASHBOARD] Serving cached stats for {cache_key}")
        return cached

    stats = await aggregator.compute_stats(now)
    if stats.unavailable:
        logger.warning(f"[DASHBOARD] Partial stats - unavailable sections: {stats.unavailable}")
    else:
        stats_cache.set(cache_key, stats)
    return stats


@router.get("/api/dashboard/sales-report", response_model=List[SalesBucket])
async def get_sales_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    group_by: str = Query("day", alias="groupBy"),
    aggregator: DashboardAggregator = Depends(get_dashboard_aggregator),
):
    """Order count and revenue per day or month."""
    logger.info(f"[DASHBOARD] Sales report - start: {start_date}, end: {end_date}, groupBy: {group_by}")
    return await aggregator.sales_report(start_date=start_date, end_date=end_date, group_by=group_by)
