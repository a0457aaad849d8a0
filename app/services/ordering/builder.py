"""Order creation and full-update workflow."""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ReferenceNotFoundError, ValidationError
from app.db.database import atomic, bounded
from app.db.models import DeliveryArea, MenuItem, MenuItemCustomization, Order, OrderItem, utcnow
from app.services.dashboard.cache import StatsCache
from app.services.ordering.models import LineItemRequest, OrderCreate, OrderUpdate, SelectedIngredient
from app.services.ordering.sequencer import OrderSequencer
from app.services.ordering.status import OrderStatus, is_terminal, validate_transition
from app.services.persistence.orders import OrderPersistenceService

logger = logging.getLogger(__name__)


def line_subtotal(price: float, quantity: int) -> float:
    return round(price * quantity, 2)


def compute_totals(line_subtotals: Iterable[float], delivery_fee: float) -> Tuple[float, float]:
    """Order subtotal and total from line subtotals and the delivery fee."""
    subtotal = round(sum(line_subtotals), 2)
    return subtotal, round(subtotal + delivery_fee, 2)


def ingredient_snapshot(menu_item: MenuItem, choices: List[SelectedIngredient]) -> List[Dict[str, Any]]:
    """
    Ingredient choices to store on a line item.

    With no choices the menu item's customizable ingredients are captured with
    their default selection. Otherwise every choice must name one of the item's
    ingredients, at most once, and a required ingredient cannot be deselected.
    """
    customizable = {custom.ingredient.name: custom for custom in menu_item.customizable_ingredients}
    if not choices:
        return [{"name": name, "selected": custom.default_selected} for name, custom in customizable.items()]

    known = set(customizable) | {ingredient.name for ingredient in menu_item.ingredients}
    seen = set()
    for choice in choices:
        if choice.name not in known:
            raise ValidationError(
                f"'{choice.name}' is not an ingredient of '{menu_item.name}'", code="unknown_ingredient"
            )
        if choice.name in seen:
            raise ValidationError(f"Ingredient '{choice.name}' is listed more than once for '{menu_item.name}'")
        seen.add(choice.name)
        custom = customizable.get(choice.name)
        if custom is not None and custom.required and not choice.selected:
            raise ValidationError(
                f"'{choice.name}' cannot be left out of '{menu_item.name}'", code="required_ingredient"
            )
    return [choice.model_dump() for choice in choices]


class OrderBuilder:
    """Builds orders from requested line items and persists them atomically."""

    def __init__(
        self,
        db: AsyncSession,
        timezone: str = "UTC",
        timeout: Optional[float] = None,
        stats_cache: Optional[StatsCache] = None,
    ):
        self.db = db
        self.timeout = timeout
        self.stats_cache = stats_cache
        self.sequencer = OrderSequencer(db, timeout=timeout)
        self.orders = OrderPersistenceService(
            db, timezone=timezone, timeout=timeout, stats_cache=stats_cache
        )

    async def create_order(self, order_in: OrderCreate) -> Order:
        """
        Price, number and store a new order with its items.

        Unit prices and names come from the menu, never from the request. The
        order row, its items and the counter increment commit together.

        Returns:
            The stored order with items, menu items and delivery area loaded

        Raises:
            ValidationError: empty order, unavailable item or inactive area
            ReferenceNotFoundError: unknown menu item or delivery area
            DataIntegrityError: stored order numbers are malformed
        """
        if not order_in.items:
            raise ValidationError("Order must contain at least one item")

        async with atomic(self.db, self.timeout):
            area = await self._resolve_delivery_area(order_in.delivery_area)
            items = await self._build_items(order_in.items)
            delivery_fee = area.fee if area else 0.0
            subtotal, total = compute_totals((item.subtotal for item in items), delivery_fee)
            order_number = await self.sequencer.allocate()

            customer = order_in.customer_info
            order = Order(
                order_number=order_number,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_address=customer.address,
                customer_neighborhood=customer.neighborhood,
                customer_complement=customer.complement,
                payment_method=order_in.payment_method,
                payment_change=order_in.payment_change,
                delivery_area_id=area.id if area else None,
                delivery_fee=delivery_fee,
                subtotal=subtotal,
                total=total,
                status=OrderStatus.PENDING.value,
                notes=order_in.notes,
                items=items,
            )
            self.db.add(order)
            await bounded(self.db.flush(), self.timeout)
            order_id = order.id

        logger.info(
            f"[ORDERS] Order {order_number} created - {len(items)} items, "
            f"subtotal: {subtotal:.2f}, total: {total:.2f}"
        )
        self._invalidate_stats()
        return await self.orders.require_order(order_id)

    async def update_order(self, order_id: int, changes: OrderUpdate) -> Order:
        """
        Apply a full update to an order that is not delivered or cancelled.

        Replacing items or the delivery area recomputes subtotal and total.
        A status in the body goes through the status machine.
        """
        sent = changes.model_fields_set
        async with atomic(self.db, self.timeout):
            order = await self.orders.require_order(order_id)
            if is_terminal(order.status):
                raise ValidationError(
                    f"Order {order.order_number} is {order.status} and can no longer be changed"
                )

            if changes.customer_info is not None:
                customer = changes.customer_info
                order.customer_name = customer.name
                order.customer_phone = customer.phone
                order.customer_address = customer.address
                order.customer_neighborhood = customer.neighborhood
                order.customer_complement = customer.complement
            if changes.payment_method is not None:
                order.payment_method = changes.payment_method
            if "payment_change" in sent:
                order.payment_change = changes.payment_change
            if "notes" in sent:
                order.notes = changes.notes
            if "delivery_area" in sent:
                area = await self._resolve_delivery_area(
                    changes.delivery_area, current_id=order.delivery_area_id
                )
                order.delivery_area_id = area.id if area else None
                order.delivery_fee = area.fee if area else 0.0
            if changes.items is not None:
                order.items = await self._build_items(changes.items)

            order.subtotal, order.total = compute_totals(
                (item.subtotal for item in order.items), order.delivery_fee
            )
            if changes.status is not None:
                order.status = validate_transition(order.status, changes.status).value
            order.updated_at = utcnow()
            order_number = order.order_number

        logger.info(f"[ORDERS] Order {order_number} updated - fields: {sorted(sent)}")
        self._invalidate_stats()
        return await self.orders.require_order(order_id)

    async def _resolve_delivery_area(
        self, area_id: Optional[int], current_id: Optional[int] = None
    ) -> Optional[DeliveryArea]:
        """Load the referenced delivery area. Inactive areas are only kept, never newly chosen."""
        if area_id is None:
            return None
        area = await bounded(self.db.get(DeliveryArea, area_id), self.timeout)
        if area is None:
            raise ReferenceNotFoundError(f"Delivery area {area_id} not found")
        if not area.active and area.id != current_id:
            raise ValidationError(f"Delivery area '{area.name}' is not active", code="area_inactive")
        return area

    async def _build_items(self, lines: List[LineItemRequest]) -> List[OrderItem]:
        """Order items priced from the current menu."""
        if not lines:
            raise ValidationError("Order must contain at least one item")

        wanted = {line.menu_item for line in lines}
        result = await bounded(
            self.db.execute(
                select(MenuItem)
                .where(MenuItem.id.in_(wanted))
                .options(
                    selectinload(MenuItem.ingredients),
                    selectinload(MenuItem.customizable_ingredients).selectinload(MenuItemCustomization.ingredient),
                )
                .execution_options(populate_existing=True)
            ),
            self.timeout,
        )
        menu = {menu_item.id: menu_item for menu_item in result.scalars().all()}

        items = []
        for line in lines:
            menu_item = menu.get(line.menu_item)
            if menu_item is None:
                raise ReferenceNotFoundError(f"Menu item {line.menu_item} not found")
            if not menu_item.available:
                raise ValidationError(f"Menu item '{menu_item.name}' is not available", code="item_unavailable")
            if line.quantity < 1:
                raise ValidationError(f"Quantity for '{menu_item.name}' must be at least 1")
            items.append(
                OrderItem(
                    menu_item_id=menu_item.id,
                    name=menu_item.name,
                    price=menu_item.price,
                    quantity=line.quantity,
                    ingredients=ingredient_snapshot(menu_item, line.ingredients),
                    subtotal=line_subtotal(menu_item.price, line.quantity),
                )
            )
        return items

    def _invalidate_stats(self) -> None:
        if self.stats_cache is not None:
            self.stats_cache.invalidate()
