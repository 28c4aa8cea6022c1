"""Inventory ledger: the only code that moves ``TicketType.sold_count``.

``reserve`` locks the ticket type row, re-reads it and increments ``sold_count``
with a conditional UPDATE that only matches while enough stock remains. The
conditional UPDATE is a compare-and-swap on its own, so the cap holds even where
the backend ignores ``SELECT ... FOR UPDATE``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from ..exceptions import NotFoundError, OversoldError, ValidationError
from ..models import TicketType

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reservation:
    """Proof that ``quantity`` units of a ticket type were set aside."""

    ticket_type_id: UUID
    quantity: int
    id: UUID = field(default_factory=uuid.uuid4)
    reserved_at: datetime = field(default_factory=timezone.now)


@transaction.atomic
def reserve(ticket_type_id: UUID, quantity: int) -> Reservation:
    """Atomically take ``quantity`` units out of a ticket type's inventory.

    Args:
        ticket_type_id: The ticket type to reserve from.
        quantity: How many units, at least 1.

    Returns:
        The reservation.

    Raises:
        ValidationError: If quantity < 1 or the ticket type is not on sale right now.
        NotFoundError: If the ticket type does not exist.
        OversoldError: If fewer than ``quantity`` units are left.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")

    ticket_type = TicketType.objects.select_for_update().filter(pk=ticket_type_id).first()
    if ticket_type is None:
        raise NotFoundError("Ticket type not found.")

    if not ticket_type.is_on_sale():
        raise ValidationError(f"Ticket sales are closed ({ticket_type.sale_status()}).")

    updated = TicketType.objects.filter(
        pk=ticket_type_id,
        sold_count__lte=F("total_quantity") - quantity,
    ).update(sold_count=F("sold_count") + quantity)
    if updated != 1:
        logger.info(
            "inventory.oversold",
            ticket_type_id=str(ticket_type_id),
            requested=quantity,
            sold_count=ticket_type.sold_count,
            total_quantity=ticket_type.total_quantity,
        )
        raise OversoldError("Not enough tickets available.")

    reservation = Reservation(ticket_type_id=ticket_type_id, quantity=quantity)
    logger.info(
        "inventory.reserved",
        ticket_type_id=str(ticket_type_id),
        quantity=quantity,
        reservation_id=str(reservation.id),
    )
    return reservation


@transaction.atomic
def release(ticket_type_id: UUID, quantity: int) -> None:
    """Give ``quantity`` units back to a ticket type, never going below zero.

    This is the compensating action for a rejected order. It is not idempotent:
    the order's status transition guarantees it runs once per order.

    Raises:
        NotFoundError: If the ticket type does not exist.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")

    updated = TicketType.objects.filter(pk=ticket_type_id).update(
        sold_count=Greatest(F("sold_count") - quantity, Value(0))
    )
    if updated != 1:
        raise NotFoundError("Ticket type not found.")
    logger.info("inventory.released", ticket_type_id=str(ticket_type_id), quantity=quantity)
