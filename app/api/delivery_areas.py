"""Delivery area API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.schemas import DeliveryAreaResponse, MessageResponse
from app.core.dependencies import get_delivery_area_repository
from app.services.catalog.delivery_areas import DeliveryAreaRepository
from app.services.catalog.models import ActiveUpdate, DeliveryAreaCreate, DeliveryAreaUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/delivery-areas", response_model=List[DeliveryAreaResponse])
async def list_delivery_areas(
    active: Optional[bool] = None,
    repository: DeliveryAreaRepository = Depends(get_delivery_area_repository),
):
    """List delivery areas by name."""
    areas = await repository.list(active=active)
    return [DeliveryAreaResponse.model_validate(area) for area in areas]


@router.get("/api/delivery-areas/{area_id}", response_model=DeliveryAreaResponse)
async def get_delivery_area(
    area_id: int,
    repository: DeliveryAreaRepository = Depends(get_delivery_area_repository),
):
    return DeliveryAreaResponse.model_validate(await repository.get(area_id))


@router.post("/api/delivery-areas", response_model=DeliveryAreaResponse, status_code=201)
async def create_delivery_area(
    area: DeliveryAreaCreate,
    repository: DeliveryAreaRepository = Depends(get_delivery_area_repository),
):
    logger.info(f"[DELIVERY AREAS] Creating area - name: {area.name}, fee: {area.fee:.2f}")
    return DeliveryAreaResponse.model_validate(await repository.create(area.model_dump()))


@router.put("/api/delivery-areas/{area_id}", response_model=DeliveryAreaResponse)
async def update_delivery_area(
    area_id: int,
    area: DeliveryAreaUpdate,
    repository: DeliveryAreaRepository = Depends(get_delivery_area_repository),
):
    updated = await repository.update(area_id, area.model_dump(exclude_unset=True, exclude_none=True))
    return DeliveryAreaResponse.model_validate(updated)


@router.put("/api/delivery-areas/{area_id}/status", response_model=DeliveryAreaResponse)
async def set_delivery_area_status(
    area_id: int,
    body: ActiveUpdate,
    repository: DeliveryAreaRepository = Depends(get_delivery_area_repository),
):
    """Enable or disable deliveries to an area."""
    logger.info(f"[DELIVERY AREAS] Area {area_id} active -> {body.active}")
    updated = await repository.set_flag(area_id, "active", body.active)
    return DeliveryAreaResponse.model_validate(updated)


@router.delete("/api/delivery-areas/{area_id}", response_model=MessageResponse)
async def delete_delivery_area(
    area_id: int,
    repository: DeliveryAreaRepository = Depends(get_delivery_area_repository),
):
    await repository.delete(area_id)
    return MessageResponse(message=f"Delivery area {area_id} deleted")
