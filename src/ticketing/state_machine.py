"""Order lifecycle: statuses, actions and the table of legal transitions.

    pending_payment --submit_proof--> pending_verification --approve--> paid
                                                           \\--reject--> rejected

``paid`` and ``rejected`` are terminal. Any (status, action) pair missing from
``TRANSITIONS`` is refused with ``StateConflictError``.
"""

import typing as t

from django.db import models

from .exceptions import StateConflictError


class OrderStatus(models.TextChoices):
    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PENDING_VERIFICATION = "pending_verification", "Pending verification"
    PAID = "paid", "Paid"
    REJECTED = "rejected", "Rejected"


class OrderAction(models.TextChoices):
    SUBMIT_PROOF = "submit_proof", "Submit payment proof"
    APPROVE = "approve", "Approve payment"
    REJECT = "reject", "Reject payment"


TRANSITIONS: t.Final[dict[tuple[OrderStatus, OrderAction], OrderStatus]] = {
    (OrderStatus.PENDING_PAYMENT, OrderAction.SUBMIT_PROOF): OrderStatus.PENDING_VERIFICATION,
    (OrderStatus.PENDING_VERIFICATION, OrderAction.APPROVE): OrderStatus.PAID,
    (OrderStatus.PENDING_VERIFICATION, OrderAction.REJECT): OrderStatus.REJECTED,
}

TERMINAL_STATUSES: t.Final[frozenset[OrderStatus]] = frozenset({OrderStatus.PAID, OrderStatus.REJECTED})


def next_status(current: str, action: str) -> OrderStatus:
    """Return the status reached by applying ``action`` to an order in ``current``.

    Raises:
        StateConflictError: If the transition is not in the table.
    """
    try:
        return TRANSITIONS[(OrderStatus(current), OrderAction(action))]
    except (KeyError, ValueError):
        raise StateConflictError(f"Cannot {action} an order that is {current}.") from None


def allowed_actions(current: str) -> list[OrderAction]:
    """Actions that can still be applied to an order in ``current``."""
    return [action for (status, action) in TRANSITIONS if status == current]
