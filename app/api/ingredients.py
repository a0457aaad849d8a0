"""Ingredient API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.schemas import IngredientResponse, MessageResponse
from app.core.dependencies import get_ingredient_repository
from app.services.catalog.ingredients import IngredientRepository
from app.services.catalog.models import (
    AvailabilityUpdate,
    IngredientCategory,
    IngredientCreate,
    IngredientUpdate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/ingredients", response_model=List[IngredientResponse])
async def list_ingredients(
    available: Optional[bool] = None,
    category: Optional[IngredientCategory] = None,
    repository: IngredientRepository = Depends(get_ingredient_repository),
):
    """List ingredients by name."""
    ingredients = await repository.list(available=available, category=category)
    logger.debug(f"[INGREDIENTS] Returning {len(ingredients)} ingredients")
    return [IngredientResponse.model_validate(ingredient) for ingredient in ingredients]


@router.get("/api/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def get_ingredient(
    ingredient_id: int,
    repository: IngredientRepository = Depends(get_ingredient_repository),
):
    return IngredientResponse.model_validate(await repository.get(ingredient_id))


@router.post("/api/ingredients", response_model=IngredientResponse, status_code=201)
async def create_ingredient(
    ingredient: IngredientCreate,
    repository: IngredientRepository = Depends(get_ingredient_repository),
):
    logger.info(f"[INGREDIENTS] Creating ingredient - name: {ingredient.name}")
    return IngredientResponse.model_validate(await repository.create(ingredient.model_dump()))


@router.put("/api/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def update_ingredient(
    ingredient_id: int,
    ingredient: IngredientUpdate,
    repository: IngredientRepository = Depends(get_ingredient_repository),
):
    updated = await repository.update(
        ingredient_id, ingredient.model_dump(exclude_unset=True, exclude_none=True)
    )
    return IngredientResponse.model_validate(updated)


@router.put("/api/ingredients/{ingredient_id}/availability", response_model=IngredientResponse)
async def set_ingredient_availability(
    ingredient_id: int,
    body: AvailabilityUpdate,
    repository: IngredientRepository = Depends(get_ingredient_repository),
):
    logger.info(f"[INGREDIENTS] Ingredient {ingredient_id} availability -> {body.available}")
    updated = await repository.set_flag(ingredient_id, "available", body.available)
    return IngredientResponse.model_validate(updated)


@router.delete("/api/ingredients/{ingredient_id}", response_model=MessageResponse)
async def delete_ingredient(
    ingredient_id: int,
    repository: IngredientRepository = Depends(get_ingredient_repository),
):
    await repository.delete(ingredient_id)
    return MessageResponse(message=f"Ingredient {ingredient_id} deleted")
