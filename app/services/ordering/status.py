"""Order lifecycle states and the transitions allowed between them."""
from enum import Enum
from typing import Dict, FrozenSet, Union

from app.core.errors import InvalidStatusError, InvalidStatusTransitionError


class OrderStatus(str, Enum):
    """Order status workflow."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    """Convert a raw status value, rejecting anything outside the lifecycle."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise InvalidStatusError(f"Invalid status '{value}'. Allowed values: {allowed}")


def is_terminal(status: Union[str, OrderStatus]) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


def validate_transition(
    current: Union[str, OrderStatus], target: Union[str, OrderStatus]
) -> OrderStatus:
    """
    Check that an order in ``current`` may move to ``target``.

    Re-applying the current status is accepted as a no-op.

    Returns:
        The parsed target status

    Raises:
        InvalidStatusError: if either value is not a known status
        InvalidStatusTransitionError: if the move is not in the transition table
    """
    current_status = parse_status(current)
    target_status = parse_status(target)
    if target_status == current_status:
        return target_status
    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidStatusTransitionError(
            f"Cannot change order status from '{current_status.value}' to '{target_status.value}'"
        )
    return target_status
