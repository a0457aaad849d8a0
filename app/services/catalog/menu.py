"""Menu item repository."""
import logging
from typing import Any, Dict, List

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from app.core.errors import ReferenceNotFoundError, ValidationError
from app.db.database import bounded
from app.db.models import Ingredient, MenuItem, MenuItemCustomization, OrderItem
from app.services.catalog.base import CatalogRepository

logger = logging.getLogger(__name__)


class MenuRepository(CatalogRepository[MenuItem]):
    """Repository for menu items and their ingredient associations."""

    model = MenuItem
    label = "Menu item"
    flag_fields = ("available",)

    def _base_query(self):
        return select(MenuItem).options(
            selectinload(MenuItem.ingredients),
            selectinload(MenuItem.customizable_ingredients).selectinload(MenuItemCustomization.ingredient),
        )

    def _ordering(self) -> list:
        return [MenuItem.category, MenuItem.name]

    async def _apply(self, record: MenuItem, fields: Dict[str, Any]) -> None:
        fields = dict(fields)
        ingredient_ids = fields.pop("ingredient_ids", None)
        customizations = fields.pop("customizable_ingredients", None)
        await super()._apply(record, fields)
        if ingredient_ids is not None:
            record.ingredients = await self._resolve_ingredients(ingredient_ids)
        if customizations is not None:
            await self._apply_customizations(record, customizations)

    async def _resolve_ingredients(self, ingredient_ids: List[int]) -> List[Ingredient]:
        """Load ingredients by ID, keeping request order and dropping duplicates."""
        wanted = list(dict.fromkeys(ingredient_ids))
        if not wanted:
            return []
        result = await bounded(
            self.db.execute(select(Ingredient).where(Ingredient.id.in_(wanted))),
            self.timeout,
        )
        found = {ingredient.id: ingredient for ingredient in result.scalars().all()}
        missing = [ingredient_id for ingredient_id in wanted if ingredient_id not in found]
        if missing:
            raise ReferenceNotFoundError(f"Ingredient(s) not found: {missing}")
        return [found[ingredient_id] for ingredient_id in wanted]

    async def _apply_customizations(self, record: MenuItem, entries: List[Dict[str, Any]]) -> None:
        """Replace the customizable ingredients, updating rows that stay in place."""
        ingredient_ids = [entry["ingredient"] for entry in entries]
        if len(set(ingredient_ids)) != len(ingredient_ids):
            raise ValidationError("Customizable ingredients must not repeat an ingredient")
        ingredients = {ingredient.id: ingredient for ingredient in await self._resolve_ingredients(ingredient_ids)}

        existing = {custom.ingredient_id: custom for custom in record.customizable_ingredients}
        customizations = []
        for position, entry in enumerate(entries):
            custom = existing.get(entry["ingredient"])
            if custom is None:
                custom = MenuItemCustomization(ingredient=ingredients[entry["ingredient"]])
            custom.required = entry.get("required", False)
            custom.default_selected = entry.get("default_selected", True)
            custom.position = position
            customizations.append(custom)
        record.customizable_ingredients = customizations

    async def _before_delete(self, record: MenuItem) -> None:
        # Detach associations and past order lines; ingredients and orders are kept
        record.ingredients.clear()
        record.customizable_ingredients.clear()
        await bounded(self.db.flush(), self.timeout)
        await bounded(
            self.db.execute(
                update(OrderItem)
                .where(OrderItem.menu_item_id == record.id)
                .values(menu_item_id=None)
                .execution_options(synchronize_session=False)
            ),
            self.timeout,
        )
        logger.debug(f"[MENU] Detached ingredients and order lines from menu item {record.id}")
