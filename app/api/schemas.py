"""API response models."""
from datetime import datetime
from typing import List, Optional

from app.core.schemas import CamelModel
from app.db.models import Order


class MessageResponse(CamelModel):
    message: str


class IngredientResponse(CamelModel):
    """Ingredient response model."""

    id: int
    name: str
    category: str
    price: float
    available: bool
    description: str = ""
    created_at: datetime
    updated_at: datetime


class CustomizableIngredientResponse(CamelModel):
    ingredient: IngredientResponse
    required: bool
    default_selected: bool


class MenuItemResponse(CamelModel):
    """Menu item response model."""

    id: int
    name: str
    description: str = ""
    category: str
    price: float
    image: str = ""
    available: bool
    preparation_time: int
    ingredients: List[IngredientResponse] = []
    customizable_ingredients: List[CustomizableIngredientResponse] = []
    created_at: datetime
    updated_at: datetime


class DeliveryAreaResponse(CamelModel):
    """Delivery area response model."""

    id: int
    name: str
    fee: float
    estimated_time: int
    active: bool
    description: str = ""
    created_at: datetime
    updated_at: datetime


class MenuItemSummary(CamelModel):
    id: int
    name: str
    category: str
    price: float
    available: bool


class SelectedIngredientResponse(CamelModel):
    name: str
    selected: bool = True


class OrderItemResponse(CamelModel):
    """Order item response model."""

    id: int
    menu_item_id: Optional[int] = None
    menu_item: Optional[MenuItemSummary] = None
    name: str
    price: float
    quantity: int
    ingredients: List[SelectedIngredientResponse] = []
    subtotal: float


class CustomerInfoResponse(CamelModel):
    name: str
    phone: str
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    complement: Optional[str] = None


class OrderResponse(CamelModel):
    """Order response model."""

    id: int
    order_number: str
    customer_info: CustomerInfoResponse
    payment_method: str
    payment_change: Optional[float] = None
    delivery_area: Optional[DeliveryAreaResponse] = None
    delivery_fee: float
    subtotal: float
    total: float
    status: str
    notes: Optional[str] = None
    order_date: datetime
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        """Build the response from an order loaded with its associations."""
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_info=CustomerInfoResponse(
                name=order.customer_name,
                phone=order.customer_phone,
                address=order.customer_address,
                neighborhood=order.customer_neighborhood,
                complement=order.customer_complement,
            ),
            payment_method=order.payment_method,
            payment_change=order.payment_change,
            delivery_area=(
                DeliveryAreaResponse.model_validate(order.delivery_area)
                if order.delivery_area
                else None
            ),
            delivery_fee=order.delivery_fee,
            subtotal=order.subtotal,
            total=order.total,
            status=order.status,
            notes=order.notes,
            order_date=order.order_date,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[
                OrderItemResponse(
                    id=item.id,
                    menu_item_id=item.menu_item_id,
                    menu_item=(
                        MenuItemSummary.model_validate(item.menu_item) if item.menu_item else None
                    ),
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    ingredients=item.ingredients or [],
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
        )


class OrderListResponse(CamelModel):
    orders: List[OrderResponse]
    total_pages: int
    current_page: int
    total: int
