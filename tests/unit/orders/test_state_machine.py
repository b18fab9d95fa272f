"""Unit tests for the Order status state machine.

Covers:
- The transition table (valid and invalid pairs).
- Terminal states.
- Model-level helpers (``can_transition_to``, ``is_terminal``).
"""

from __future__ import annotations

import itertools

import pytest

from modules.orders.constants import (
    REFUNDABLE_STATES,
    RESERVED_STATES,
    STAFF_STATUS_UPDATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit

ALLOWED = {
    (OrderStatus.PENDING_PAYMENT, OrderStatus.PAID),
    (OrderStatus.PENDING_PAYMENT, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.ACCEPTED),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
    (OrderStatus.ACCEPTED, OrderStatus.IN_TRANSIT),
    (OrderStatus.ACCEPTED, OrderStatus.CANCELLED),
    (OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED),
}


@pytest.mark.parametrize(
    "current,target", list(itertools.product(OrderStatus.values, OrderStatus.values))
)
def test_transition_table(current, target):
    order = Order(status=current)
    assert order.can_transition_to(target) == ((current, target) in ALLOWED)


def test_every_status_has_an_entry():
    assert set(VALID_TRANSITIONS) == set(OrderStatus.values)


@pytest.mark.parametrize("status", sorted(TERMINAL_STATES))
def test_terminal_states_have_no_exit(status):
    order = Order(status=status)
    assert order.is_terminal
    assert VALID_TRANSITIONS[status] == set()


def test_in_transit_cannot_be_cancelled():
    assert not Order(status=OrderStatus.IN_TRANSIT).can_transition_to(OrderStatus.CANCELLED)


def test_staff_updates_exclude_payment_and_cancellation():
    assert OrderStatus.PAID not in STAFF_STATUS_UPDATES
    assert OrderStatus.CANCELLED not in STAFF_STATUS_UPDATES


def test_reserved_and_refundable_states_are_disjoint():
    assert RESERVED_STATES == {OrderStatus.PENDING_PAYMENT}
    assert REFUNDABLE_STATES == {OrderStatus.PAID, OrderStatus.ACCEPTED}
