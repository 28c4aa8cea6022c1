"""Mints tickets for an approved order."""

import secrets
import string

import structlog
from django.db import transaction

from ..exceptions import StateConflictError
from ..models import Order, Ticket
from ..state_machine import OrderStatus
from . import references

logger = structlog.get_logger(__name__)

_TICKET_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_ticket_code(issued_at_ms: int) -> str:
    """``TKT-<epoch ms>-<9 random chars>``; ticket numbers are derived from it."""
    suffix = "".join(secrets.choice(_TICKET_CODE_ALPHABET) for _ in range(9))
    return f"TKT-{issued_at_ms}-{suffix}"


@transaction.atomic
def issue(order: Order, *, issued_at_ms: int | None = None) -> list[Ticket]:
    """Create ``order.quantity`` active tickets, each with its own signed reference.

    Must run inside the approval transaction, after the order was moved to ``paid``
    and given a ``ticket_code``. The inventory is not touched: the units were
    counted when the order was reserved.

    Args:
        order: The order being approved.
        issued_at_ms: Issuance timestamp embedded in every reference (defaults to now).

    Returns:
        The created tickets, ordered by sequence.
    """
    if order.status != OrderStatus.PAID or not order.ticket_code:
        raise StateConflictError("Tickets can only be issued for a paid order with a ticket code.")

    issued_at_ms = issued_at_ms or references.issued_at_ms()
    details = order.payment_details or {}
    buyer = order.buyer
    holder_name = str(details.get("holder_name") or buyer.get_display_name())
    holder_email = str(details.get("holder_email") or buyer.email)
    holder_phone = str(details.get("holder_phone") or buyer.phone_number)

    tickets = [
        Ticket(
            order=order,
            event_id=order.event_id,
            ticket_type_id=order.ticket_type_id,
            user_id=order.buyer_id,
            sequence=sequence,
            ticket_number=f"{order.ticket_code}-{sequence}",
            reference=references.sign(order.id, order.event_id, order.buyer_id, sequence, issued_at_ms),
            holder_name=holder_name,
            holder_email=holder_email,
            holder_phone=holder_phone,
        )
        for sequence in range(1, order.quantity + 1)
    ]
    for ticket in tickets:
        ticket.save()

    logger.info("tickets.issued", order_id=str(order.id), count=len(tickets), ticket_code=order.ticket_code)
    return tickets
