"""Order request models."""
from typing import List, Optional

from pydantic import Field

from app.core.schemas import CamelModel


class CustomerInfo(CamelModel):
    """Customer contact and delivery address."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    neighborhood: Optional[str] = Field(None, max_length=100)
    complement: Optional[str] = Field(None, max_length=255)


class SelectedIngredient(CamelModel):
    """Ingredient choice captured on a line item."""

    name: str = Field(..., min_length=1)
    selected: bool = True


class LineItemRequest(CamelModel):
    """
    Requested line item.

    Only the menu item reference, quantity and ingredient choices are taken
    from the client. Name and unit price always come from the menu.
    """

    menu_item: int
    quantity: int = Field(1, ge=1)
    ingredients: List[SelectedIngredient] = []


class OrderCreate(CamelModel):
    """Request body for creating an order."""

    customer_info: CustomerInfo
    items: List[LineItemRequest] = Field(..., min_length=1)
    delivery_area: Optional[int] = None
    payment_method: str = Field(..., min_length=1, max_length=30)
    payment_change: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class OrderUpdate(CamelModel):
    """Request body for a full order update. Omitted fields are left as they are."""

    customer_info: Optional[CustomerInfo] = None
    items: Optional[List[LineItemRequest]] = Field(None, min_length=1)
    delivery_area: Optional[int] = None
    payment_method: Optional[str] = Field(None, min_length=1, max_length=30)
    payment_change: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    status: Optional[str] = None


class StatusUpdate(CamelModel):
    status: str
