from io import BytesIO
from uuid import UUID

import qrcode
import structlog
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from accounts.models import User

from ..exceptions import AuthorizationError, NotFoundError, StateConflictError
from ..models import Ticket
from . import assert_organizer

logger = structlog.get_logger(__name__)


def list_user_tickets(user: User, event_id: UUID | None = None) -> QuerySet[Ticket]:
    qs = Ticket.objects.for_user(user.id).full()
    if event_id:
        qs = qs.filter(event_id=event_id)
    return qs


def get_user_ticket(user: User, ticket_id: UUID) -> Ticket:
    """Fetch one of the user's own tickets.

    Raises:
        NotFoundError: unknown ticket.
        AuthorizationError: someone else's ticket.
    """
    ticket = Ticket.objects.full().filter(pk=ticket_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found.")
    if ticket.user_id != user.id:
        raise AuthorizationError("This ticket belongs to someone else.")
    return ticket


@transaction.atomic
def cancel_ticket(organizer: User, ticket_id: UUID) -> Ticket:
    """Administratively cancel an active ticket. Used tickets stay used.

    Raises:
        NotFoundError: unknown ticket.
        AuthorizationError: the actor does not organize the ticket's event.
        StateConflictError: the ticket is not active.
    """
    ticket = Ticket.objects.select_for_update().select_related("event").filter(pk=ticket_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found.")
    assert_organizer(organizer, ticket.event)

    updated = Ticket.objects.filter(pk=ticket.pk, status=Ticket.TicketStatus.ACTIVE, is_used=False).update(
        status=Ticket.TicketStatus.CANCELLED, updated_at=timezone.now()
    )
    if updated != 1:
        raise StateConflictError(f"Cannot cancel a ticket that is {ticket.status}.")

    logger.info("ticket.cancelled", ticket_id=str(ticket.id), event_id=str(ticket.event_id))
    return Ticket.objects.full().get(pk=ticket.pk)


def render_qr_png(ticket: Ticket) -> bytes:
    """A PNG QR code encoding the ticket's signed reference."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(ticket.reference)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    return buffered.getvalue()
