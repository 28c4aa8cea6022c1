import itertools

import pytest

from ticketing.exceptions import StateConflictError
from ticketing.state_machine import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    OrderAction,
    OrderStatus,
    allowed_actions,
    next_status,
)


@pytest.mark.parametrize(
    "current,action,expected",
    [
        (OrderStatus.PENDING_PAYMENT, OrderAction.SUBMIT_PROOF, OrderStatus.PENDING_VERIFICATION),
        (OrderStatus.PENDING_VERIFICATION, OrderAction.APPROVE, OrderStatus.PAID),
        (OrderStatus.PENDING_VERIFICATION, OrderAction.REJECT, OrderStatus.REJECTED),
    ],
)
def test_legal_transitions(current: OrderStatus, action: OrderAction, expected: OrderStatus) -> None:
    assert next_status(current, action) == expected


def test_every_other_pair_is_refused() -> None:
    """Every (status, action) pair outside the table raises StateConflictError."""
    for status, action in itertools.product(OrderStatus, OrderAction):
        if (status, action) in TRANSITIONS:
            continue
        with pytest.raises(StateConflictError):
            next_status(status, action)


def test_terminal_statuses_allow_nothing() -> None:
    assert TERMINAL_STATUSES == {OrderStatus.PAID, OrderStatus.REJECTED}
    for status in TERMINAL_STATUSES:
        assert allowed_actions(status) == []


def test_allowed_actions() -> None:
    assert allowed_actions(OrderStatus.PENDING_PAYMENT) == [OrderAction.SUBMIT_PROOF]
    assert set(allowed_actions(OrderStatus.PENDING_VERIFICATION)) == {OrderAction.APPROVE, OrderAction.REJECT}


@pytest.mark.parametrize("current,action", [("confirmed", "approve"), ("pending_payment", "refund"), ("", "")])
def test_unknown_values_are_state_conflicts(current: str, action: str) -> None:
    with pytest.raises(StateConflictError):
        next_status(current, action)
