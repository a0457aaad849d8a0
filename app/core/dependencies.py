"""FastAPI dependencies."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.database import get_db
from app.services.catalog.delivery_areas import DeliveryAreaRepository
from app.services.catalog.ingredients import IngredientRepository
from app.services.catalog.menu import MenuRepository
from app.services.dashboard.aggregator import DashboardAggregator
from app.services.dashboard.cache import StatsCache
from app.services.ordering.builder import OrderBuilder
from app.services.persistence.orders import OrderPersistenceService

_stats_cache: StatsCache = StatsCache(ttl_seconds=settings.dashboard_cache_ttl_seconds)


def get_stats_cache() -> StatsCache:
    """Get the process-wide dashboard stats cache."""
    return _stats_cache


def get_menu_repository(db: AsyncSession = Depends(get_db)) -> MenuRepository:
    """Get menu repository instance."""
    return MenuRepository(db, timeout=settings.db_timeout_seconds)


def get_ingredient_repository(db: AsyncSession = Depends(get_db)) -> IngredientRepository:
    return IngredientRepository(db, timeout=settings.db_timeout_seconds)


def get_delivery_area_repository(db: AsyncSession = Depends(get_db)) -> DeliveryAreaRepository:
    return DeliveryAreaRepository(db, timeout=settings.db_timeout_seconds)


def get_order_service(
    db: AsyncSession = Depends(get_db),
    stats_cache: StatsCache = Depends(get_stats_cache),
) -> OrderPersistenceService:
    return OrderPersistenceService(
        db,
        timezone=settings.business_timezone,
        timeout=settings.db_timeout_seconds,
        stats_cache=stats_cache,
    )


def get_order_builder(
    db: AsyncSession = Depends(get_db),
    stats_cache: StatsCache = Depends(get_stats_cache),
) -> OrderBuilder:
    return OrderBuilder(
        db,
        timezone=settings.business_timezone,
        timeout=settings.db_timeout_seconds,
        stats_cache=stats_cache,
    )


def get_dashboard_aggregator(db: AsyncSession = Depends(get_db)) -> DashboardAggregator:
    return DashboardAggregator(
        db,
        timezone=settings.business_timezone,
        website_url=settings.website_url,
        timeout=settings.db_timeout_seconds,
    )
