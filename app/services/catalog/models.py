"""Catalog request models."""
from enum import Enum
from typing import List, Optional

from pydantic import Field, StrictBool

from app.core.schemas import CamelModel


class MenuCategory(str, Enum):
    ACARAJES = "acarajes"
    ABARAS = "abaras"
    BEBIDAS = "bebidas"
    OUTROS = "outros"


class IngredientCategory(str, Enum):
    PROTEINA = "proteina"
    VEGETAL = "vegetal"
    MOLHO = "molho"
    TEMPERO = "tempero"
    OUTRO = "outro"


class CustomizableIngredientIn(CamelModel):
    """Ingredient a customer may toggle on a menu item."""

    ingredient: int
    required: StrictBool = False
    default_selected: StrictBool = True


class MenuItemCreate(CamelModel):
    """Menu item creation payload."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    category: MenuCategory
    price: float = Field(..., ge=0)
    image: str = ""
    available: StrictBool = True
    preparation_time: int = Field(15, ge=0)
    ingredient_ids: List[int] = []
    customizable_ingredients: List[CustomizableIngredientIn] = []


class MenuItemUpdate(CamelModel):
    """Partial menu item update. Only the fields sent are changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[MenuCategory] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    available: Optional[StrictBool] = None
    preparation_time: Optional[int] = Field(None, ge=0)
    ingredient_ids: Optional[List[int]] = None
    customizable_ingredients: Optional[List[CustomizableIngredientIn]] = None


class IngredientCreate(CamelModel):
    """Ingredient creation payload."""

    name: str = Field(..., min_length=1, max_length=100)
    category: IngredientCategory = IngredientCategory.OUTRO
    price: float = Field(0.0, ge=0)
    available: StrictBool = True
    description: str = ""


class IngredientUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[IngredientCategory] = None
    price: Optional[float] = Field(None, ge=0)
    available: Optional[StrictBool] = None
    description: Optional[str] = None


class DeliveryAreaCreate(CamelModel):
    """Delivery area creation payload."""

    name: str = Field(..., min_length=1, max_length=100)
    fee: float = Field(..., ge=0)
    estimated_time: int = Field(30, ge=0)
    active: StrictBool = True
    description: str = ""


class DeliveryAreaUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    fee: Optional[float] = Field(None, ge=0)
    estimated_time: Optional[int] = Field(None, ge=0)
    active: Optional[StrictBool] = None
    description: Optional[str] = None


class AvailabilityUpdate(CamelModel):
    available: StrictBool


class ActiveUpdate(CamelModel):
    active: StrictBool
