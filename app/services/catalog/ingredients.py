"""Ingredient repository."""
from sqlalchemy import delete

from app.db.database import bounded
from app.db.models import Ingredient, MenuItemCustomization, menu_item_ingredients
from app.services.catalog.base import CatalogRepository


class IngredientRepository(CatalogRepository[Ingredient]):
    model = Ingredient
    label = "Ingredient"
    flag_fields = ("available",)
    unique_field = "name"

    async def _before_delete(self, record: Ingredient) -> None:
        # Menu items that listed it keep their other ingredients
        await bounded(
            self.db.execute(
                menu_item_ingredients.delete().where(menu_item_ingredients.c.ingredient_id == record.id)
            ),
            self.timeout,
        )
        await bounded(
            self.db.execute(
                delete(MenuItemCustomization).where(MenuItemCustomization.ingredient_id == record.id)
            ),
            self.timeout,
        )
