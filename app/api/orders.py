"""Order API endpoints."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.api.schemas import MessageResponse, OrderListResponse, OrderResponse
from app.core.dependencies import get_order_builder, get_order_service
from app.services.ordering.builder import OrderBuilder
from app.services.ordering.models import OrderCreate, OrderUpdate, StatusUpdate
from app.services.ordering.status import OrderStatus
from app.services.persistence.orders import OrderPersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/orders", response_model=OrderListResponse)
async def list_orders(
    request: Request,
    status: Optional[OrderStatus] = None,
    day: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    order_service: OrderPersistenceService = Depends(get_order_service),
):
    """List orders newest first, filtered by status and/or creation day."""
    logger.info(
        f"[ORDERS] List requested - status: {status}, date: {day}, page: {page}, limit: {limit}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    orders, total, total_pages = await order_service.list_orders(
        status=status, day=day, page=page, limit=limit
    )
    logger.info(f"[ORDERS] Found {total} matching orders, returning {len(orders)}")
    return OrderListResponse(
        orders=[OrderResponse.from_order(order) for order in orders],
        total_pages=total_pages,
        current_page=page,
        total=total,
    )


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    order_service: OrderPersistenceService = Depends(get_order_service),
):
    return OrderResponse.from_order(await order_service.require_order(order_id))


@router.post("/api/orders", response_model=OrderResponse, status_code=201)
async def create_order(
    order_in: OrderCreate,
    builder: OrderBuilder = Depends(get_order_builder),
):
    """Create an order. Prices are taken from the menu, not from the request."""
    logger.info(
        f"[ORDERS] Create requested - customer: {order_in.customer_info.name}, "
        f"items: {len(order_in.items)}, delivery area: {order_in.delivery_area}"
    )
    order = await builder.create_order(order_in)
    return OrderResponse.from_order(order)


@router.put("/api/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    body: StatusUpdate,
    order_service: OrderPersistenceService = Depends(get_order_service),
):
    """Move an order along its lifecycle."""
    logger.info(f"[ORDERS] Status change requested - order: {order_id}, status: {body.status}")
    order = await order_service.set_status(order_id, body.status)
    return OrderResponse.from_order(order)


@router.put("/api/orders/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    changes: OrderUpdate,
    builder: OrderBuilder = Depends(get_order_builder),
):
    """Update customer, payment, delivery and item details of an open order."""
    order = await builder.update_order(order_id, changes)
    return OrderResponse.from_order(order)


@router.delete("/api/orders/{order_id}", response_model=MessageResponse)
async def cancel_order(
    order_id: int,
    order_service: OrderPersistenceService = Depends(get_order_service),
):
    """Cancel an order. The order is kept with status ``cancelled``."""
    order = await order_service.cancel_order(order_id)
    logger.info(f"[ORDERS] Order {order.order_number} cancelled")
    return MessageResponse(message=f"Order {order.order_number} cancelled")
