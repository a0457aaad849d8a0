"""Database models."""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


menu_item_ingredients = Table(
    "menu_item_ingredients",
    Base.metadata,
    Column("menu_item_id", Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True),
    Column("ingredient_id", Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), primary_key=True),
)


class Ingredient(Base):
    """Ingredient model."""

    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(20), default="outro", nullable=False)  # proteina, vegetal, molho, tempero, outro
    price = Column(Float, default=0.0, nullable=False)
    available = Column(Boolean, default=True, nullable=False)
    description = Column(Text, default="", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class MenuItem(Base):
    """Menu item model."""

    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, default="", nullable=False)
    category = Column(String(20), nullable=False, index=True)  # acarajes, abaras, bebidas, outros
    price = Column(Float, nullable=False)
    image = Column(String(500), default="", nullable=False)
    available = Column(Boolean, default=True, nullable=False)
    preparation_time = Column(Integer, default=15, nullable=False)  # minutes
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    ingredients = relationship(
        "Ingredient",
        secondary=menu_item_ingredients,
        order_by="Ingredient.name",
        lazy="selectin",
    )
    customizable_ingredients = relationship(
        "MenuItemCustomization",
        cascade="all, delete-orphan",
        order_by="MenuItemCustomization.position",
        lazy="selectin",
    )


class MenuItemCustomization(Base):
    """Ingredient a customer may add or leave out of a menu item."""

    __tablename__ = "menu_item_customizations"

    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), primary_key=True)
    required = Column(Boolean, default=False, nullable=False)  # cannot be left out
    default_selected = Column(Boolean, default=True, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    # Relationships
    ingredient = relationship("Ingredient", lazy="selectin")


class DeliveryArea(Base):
    """Delivery area model."""

    __tablename__ = "delivery_areas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    fee = Column(Float, nullable=False)
    estimated_time = Column(Integer, default=30, nullable=False)  # minutes
    active = Column(Boolean, default=True, nullable=False)
    description = Column(Text, default="", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Order(Base):
    """Order model."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(20), unique=True, nullable=False)
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(30), nullable=False)
    customer_address = Column(String(255), nullable=True)
    customer_neighborhood = Column(String(100), nullable=True)
    customer_complement = Column(String(255), nullable=True)
    payment_method = Column(String(30), nullable=False)
    payment_change = Column(Float, nullable=True)
    delivery_area_id = Column(Integer, ForeignKey("delivery_areas.id", ondelete="SET NULL"), nullable=True)
    delivery_fee = Column(Float, default=0.0, nullable=False)
    subtotal = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)
    notes = Column(Text, nullable=True)
    order_date = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    delivery_area = relationship("DeliveryArea", lazy="selectin")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )


class OrderItem(Base):
    """Order line item with the menu item's name and price captured at order time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    ingredients = Column(JSON, nullable=True)  # [{"name": ..., "selected": bool}]
    subtotal = Column(Float, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem", lazy="selectin")


class OrderCounter(Base):
    """Last issued sequence value per counter name."""

    __tablename__ = "order_counters"

    name = Column(String(50), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
