"""Append-only log of gate validation attempts."""

from uuid import UUID

import structlog
from django.db.models import QuerySet

from accounts.models import User
from events.models import Event

from ..models import Ticket, ValidationAttempt
from . import get_organized_event

logger = structlog.get_logger(__name__)

_MAX_REFERENCE_LENGTH = ValidationAttempt._meta.get_field("presented_reference").max_length or 255


def record_attempt(
    *,
    event: Event,
    validator: User,
    result: str,
    method: str = ValidationAttempt.Method.QR_SCAN,
    ticket: Ticket | None = None,
    presented_reference: str = "",
    notes: str = "",
) -> ValidationAttempt:
    """Append one attempt. Rows are never updated or deleted afterwards."""
    attempt = ValidationAttempt.objects.create(
        event=event,
        validator=validator,
        ticket=ticket,
        result=result,
        method=method,
        presented_reference=(presented_reference or "")[:_MAX_REFERENCE_LENGTH],
        notes=notes,
    )
    logger.info(
        "ticket.validation_attempt",
        event_id=str(event.id),
        ticket_id=str(ticket.id) if ticket else None,
        result=result,
        method=method,
    )
    return attempt


def list_attempts(organizer: User, event_id: UUID, *, result: str | None = None) -> QuerySet[ValidationAttempt]:
    """An event's validation history, newest first. Only its organizer may read it."""
    event = get_organized_event(organizer, event_id)
    qs = ValidationAttempt.objects.filter(event=event).select_related("ticket", "validator")
    if result:
        qs = qs.filter(result=result)
    return qs.order_by("-created_at")
