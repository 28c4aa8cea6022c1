import typing as t
from uuid import UUID

import structlog
from django.db.models import QuerySet

from accounts.models import User

from ..exceptions import NotFoundError
from ..models import TicketType
from . import get_event_or_404, get_organized_event, update_db_instance

logger = structlog.get_logger(__name__)

# Managed by the inventory ledger only.
_READ_ONLY_FIELDS = frozenset({"id", "event", "event_id", "sold_count", "created_at", "updated_at"})


def _writable(data: dict[str, t.Any]) -> dict[str, t.Any]:
    return {key: value for key, value in data.items() if key not in _READ_ONLY_FIELDS}


def list_ticket_types(organizer: User, event_id: UUID) -> QuerySet[TicketType]:
    event = get_organized_event(organizer, event_id)
    return TicketType.objects.filter(event=event)


def list_on_sale(event_id: UUID) -> QuerySet[TicketType]:
    """Active ticket types of an event, as shown to buyers."""
    event = get_event_or_404(event_id)
    return TicketType.objects.filter(event=event, is_active=True)


def create_ticket_type(organizer: User, event_id: UUID, data: dict[str, t.Any]) -> TicketType:
    event = get_organized_event(organizer, event_id)
    ticket_type = TicketType.objects.create(event=event, **_writable(data))
    logger.info("ticket_type.created", ticket_type_id=str(ticket_type.id), event_id=str(event.id))
    return ticket_type


def get_ticket_type(organizer: User, event_id: UUID, ticket_type_id: UUID) -> TicketType:
    event = get_organized_event(organizer, event_id)
    ticket_type = TicketType.objects.filter(pk=ticket_type_id, event=event).first()
    if ticket_type is None:
        raise NotFoundError("Ticket type not found for this event.")
    return ticket_type


def update_ticket_type(organizer: User, event_id: UUID, ticket_type_id: UUID, data: dict[str, t.Any]) -> TicketType:
    """Update a ticket type's configuration.

    The row is re-read under lock, so ``total_quantity`` is checked against the
    current ``sold_count`` (see ``TicketType.clean``).
    """
    ticket_type = get_ticket_type(organizer, event_id, ticket_type_id)
    ticket_type = update_db_instance(ticket_type, **_writable(data))
    logger.info("ticket_type.updated", ticket_type_id=str(ticket_type.id), fields=sorted(_writable(data)))
    return ticket_type
