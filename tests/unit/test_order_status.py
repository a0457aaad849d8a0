"""Unit tests for the order status machine."""
import pytest

from app.core.errors import InvalidStatusError, InvalidStatusTransitionError
from app.services.ordering.status import (
    ALLOWED_TRANSITIONS,
    OrderStatus,
    is_terminal,
    parse_status,
    validate_transition,
)


class TestParseStatus:
    """Test status parsing."""

    def test_parse_known_status(self):
        assert parse_status("preparing") == OrderStatus.PREPARING

    def test_parse_is_case_and_whitespace_insensitive(self):
        assert parse_status("  Confirmed ") == OrderStatus.CONFIRMED

    def test_parse_enum_passthrough(self):
        assert parse_status(OrderStatus.READY) is OrderStatus.READY

    def test_parse_unknown_status_raises(self):
        """Test that values outside the lifecycle are rejected."""
        with pytest.raises(InvalidStatusError) as exc_info:
            parse_status("shipped")

        assert exc_info.value.status_code == 400
        assert "shipped" in exc_info.value.message


class TestTransitions:
    """Test the transition table."""

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "confirmed"),
            ("confirmed", "preparing"),
            ("preparing", "ready"),
            ("ready", "delivered"),
            ("pending", "cancelled"),
            ("confirmed", "cancelled"),
            ("preparing", "cancelled"),
            ("ready", "cancelled"),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert validate_transition(current, target) == OrderStatus(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "preparing"),
            ("pending", "delivered"),
            ("confirmed", "pending"),
            ("ready", "preparing"),
            ("delivered", "cancelled"),
            ("delivered", "pending"),
            ("cancelled", "pending"),
            ("cancelled", "confirmed"),
        ],
    )
    def test_rejected_transitions(self, current, target):
        with pytest.raises(InvalidStatusTransitionError):
            validate_transition(current, target)

    @pytest.mark.parametrize("status", [status.value for status in OrderStatus])
    def test_same_status_is_noop(self, status):
        """Re-applying the current status is accepted, terminal states included."""
        assert validate_transition(status, status) == OrderStatus(status)

    def test_unknown_target_is_invalid_status(self):
        with pytest.raises(InvalidStatusError):
            validate_transition("pending", "lost")

    def test_terminal_statuses(self):
        assert is_terminal("delivered")
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal("ready")

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)
