"""Menu API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request

from app.api.schemas import MenuItemResponse, MessageResponse
from app.core.dependencies import get_menu_repository
from app.services.catalog.menu import MenuRepository
from app.services.catalog.models import AvailabilityUpdate, MenuCategory, MenuItemCreate, MenuItemUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/menu", response_model=List[MenuItemResponse])
async def list_menu_items(
    request: Request,
    category: Optional[MenuCategory] = None,
    available: Optional[bool] = None,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """List menu items, optionally filtered by category and availability."""
    logger.info(
        f"[MENU] List requested - category: {category}, available: {available}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    items = await menu_repository.list(category=category, available=available)
    logger.info(f"[MENU] Returning {len(items)} menu items")
    return [MenuItemResponse.model_validate(item) for item in items]


@router.get("/api/menu/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(
    item_id: int,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get a menu item with its ingredients."""
    return MenuItemResponse.model_validate(await menu_repository.get(item_id))


@router.post("/api/menu", response_model=MenuItemResponse, status_code=201)
async def create_menu_item(
    item: MenuItemCreate,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Create a menu item."""
    logger.info(f"[MENU] Creating item - name: {item.name}, category: {item.category.value}")
    created = await menu_repository.create(item.model_dump())
    return MenuItemResponse.model_validate(created)


@router.put("/api/menu/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: int,
    item: MenuItemUpdate,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Update the fields sent for a menu item."""
    updated = await menu_repository.update(item_id, item.model_dump(exclude_unset=True, exclude_none=True))
    return MenuItemResponse.model_validate(updated)


@router.put("/api/menu/{item_id}/availability", response_model=MenuItemResponse)
async def set_menu_item_availability(
    item_id: int,
    body: AvailabilityUpdate,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Toggle whether a menu item can be ordered."""
    logger.info(f"[MENU] Item {item_id} availability -> {body.available}")
    updated = await menu_repository.set_flag(item_id, "available", body.available)
    return MenuItemResponse.model_validate(updated)


@router.delete("/api/menu/{item_id}", response_model=MessageResponse)
async def delete_menu_item(
    item_id: int,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Delete a menu item. Its ingredients are kept."""
    await menu_repository.delete(item_id)
    return MessageResponse(message=f"Menu item {item_id} deleted")
