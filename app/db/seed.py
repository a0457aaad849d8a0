"""
Load starter menu, ingredients, delivery areas and sample orders.

Run from project root: python -m app.db.seed [--reset] [--file path/to/seed.yaml]
"""
import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import setup_logging
from app.db.database import AsyncSessionLocal, engine, init_db, reset_db
from app.services.catalog.delivery_areas import DeliveryAreaRepository
from app.services.catalog.ingredients import IngredientRepository
from app.services.catalog.menu import MenuRepository
from app.services.catalog.models import DeliveryAreaCreate, IngredientCreate, MenuItemCreate
from app.services.ordering.builder import OrderBuilder
from app.services.ordering.models import CustomerInfo, LineItemRequest, OrderCreate
from app.services.ordering.status import OrderStatus

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).parent / "data" / "seed.yaml"

# Forward path a sample order walks to reach its seeded status
LIFECYCLE = [
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
]


def load_seed_file(path: Path) -> Dict[str, Any]:
    """Read the seed YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def status_path(target: OrderStatus) -> List[OrderStatus]:
    """Statuses to apply, in order, to take a new pending order to ``target``."""
    if target == OrderStatus.PENDING:
        return []
    if target == OrderStatus.CANCELLED:
        return [OrderStatus.CANCELLED]
    return LIFECYCLE[: LIFECYCLE.index(target) + 1]


async def seed(session: AsyncSession, data: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, int]:
    """
    Insert the seed data through the catalog repositories and order builder.

    Args:
        session: Database session
        data: Parsed seed file
        timeout: Per-call store timeout

    Returns:
        Number of records created per section
    """
    ingredient_repo = IngredientRepository(session, timeout=timeout)
    area_repo = DeliveryAreaRepository(session, timeout=timeout)
    menu_repo = MenuRepository(session, timeout=timeout)
    builder = OrderBuilder(session, timezone=settings.business_timezone, timeout=timeout)

    ingredient_ids: Dict[str, int] = {}
    for entry in data.get("ingredients", []):
        record = await ingredient_repo.create(IngredientCreate(**entry).model_dump())
        ingredient_ids[record.name] = record.id

    area_ids: Dict[str, int] = {}
    for entry in data.get("delivery_areas", []):
        record = await area_repo.create(DeliveryAreaCreate(**entry).model_dump())
        area_ids[record.name] = record.id

    menu_ids: Dict[str, int] = {}
    for entry in data.get("menu_items", []):
        entry = dict(entry)
        names = entry.pop("ingredients", [])
        entry["ingredient_ids"] = [ingredient_ids[name] for name in names]
        entry["customizable_ingredients"] = [
            {**custom, "ingredient": ingredient_ids[custom["ingredient"]]}
            for custom in entry.get("customizable_ingredients", [])
        ]
        record = await menu_repo.create(MenuItemCreate(**entry).model_dump())
        menu_ids[record.name] = record.id

    order_count = 0
    for entry in data.get("orders", []):
        order_in = OrderCreate(
            customer_info=CustomerInfo(**entry["customer"]),
            items=[
                LineItemRequest(
                    menu_item=menu_ids[line["menu_item"]],
                    quantity=line.get("quantity", 1),
                    ingredients=line.get("ingredients", []),
                )
                for line in entry["items"]
            ],
            delivery_area=area_ids.get(entry.get("delivery_area")),
            payment_method=entry["payment_method"],
            notes=entry.get("notes"),
        )
        order = await builder.create_order(order_in)
        for status in status_path(OrderStatus(entry.get("status", "pending"))):
            await builder.orders.set_status(order.id, status)
        order_count += 1

    return {
        "ingredients": len(ingredient_ids),
        "delivery_areas": len(area_ids),
        "menu_items": len(menu_ids),
        "orders": order_count,
    }


async def main(seed_file: Path, reset: bool) -> None:
    setup_logging()
    await init_db()
    data = load_seed_file(seed_file)
    try:
        async with AsyncSessionLocal() as session:
            if reset:
                await reset_db(session)
            counts = await seed(session, data, timeout=settings.db_timeout_seconds)
        logger.info(f"Seed complete: {counts}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load starter data into the order database")
    parser.add_argument("--reset", action="store_true", help="Delete all existing rows first")
    parser.add_argument("--file", type=Path, default=DEFAULT_SEED_FILE, help="Seed YAML file")
    args = parser.parse_args()
    asyncio.run(main(args.file, args.reset))
