"""Gate validation: authenticate a presented ticket and use it exactly once.

Every outcome, success or not, is appended to the audit log in the same
transaction as the ticket update.
"""

from dataclasses import dataclass
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from events.models import Event

from ..exceptions import SignatureError
from ..models import Ticket, ValidationAttempt
from . import audit, get_organized_event, references

logger = structlog.get_logger(__name__)

Result = ValidationAttempt.Result
Method = ValidationAttempt.Method


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None
    ticket: Ticket | None
    attempt: ValidationAttempt


@dataclass(frozen=True)
class _Gate:
    """Who is validating what, and how it was presented."""

    event: Event
    validator: User
    method: str
    presented: str

    def finish(self, result: str, ticket: Ticket | None = None, notes: str = "") -> ValidationResult:
        attempt = audit.record_attempt(
            event=self.event,
            validator=self.validator,
            result=result,
            method=self.method,
            ticket=ticket,
            presented_reference=self.presented,
            notes=notes,
        )
        valid = result == Result.VALID
        return ValidationResult(valid=valid, reason=None if valid else result, ticket=ticket, attempt=attempt)


def _used_notes(ticket: Ticket) -> str:
    notes = f"Already used at {ticket.used_at:%Y-%m-%d %H:%M:%S}" if ticket.used_at else "Already used"
    if ticket.validated_by:
        notes += f" by {ticket.validated_by.display_name}"
    return notes + "."


def _use_ticket(gate: _Gate, ticket: Ticket) -> ValidationResult:
    """Steps shared by both paths once the ticket has been found for the right event."""
    if ticket.is_used:
        return gate.finish(Result.ALREADY_USED, ticket, _used_notes(ticket))
    if ticket.status == Ticket.TicketStatus.CANCELLED:
        return gate.finish(Result.INVALID, ticket, "Ticket was cancelled.")

    now = timezone.now()
    # compare-and-set: only one concurrent scan can flip is_used
    updated = Ticket.objects.filter(pk=ticket.pk, is_used=False, status=Ticket.TicketStatus.ACTIVE).update(
        is_used=True,
        status=Ticket.TicketStatus.USED,
        used_at=now,
        validated_by=gate.validator,
        updated_at=now,
    )
    ticket = Ticket.objects.full().get(pk=ticket.pk)
    if updated != 1:
        result = Result.ALREADY_USED if ticket.is_used else Result.INVALID
        return gate.finish(result, ticket, "Lost a concurrent validation.")

    logger.info("ticket.validated", ticket_id=str(ticket.id), event_id=str(gate.event.id), method=gate.method)
    return gate.finish(Result.VALID, ticket)


def validate(reference: str, event_id: UUID, validator: User) -> ValidationResult:
    """Validate a signed reference scanned at the gate of ``event_id``.

    Checks, in order: signature, event, existence, already used, cancelled. Only
    when all pass is the ticket moved from ``active`` to ``used``.

    Raises:
        NotFoundError: Unknown event.
        AuthorizationError: ``validator`` does not organize the event.
    """
    event = get_organized_event(validator, event_id)
    gate = _Gate(event=event, validator=validator, method=Method.QR_SCAN, presented=reference)

    with transaction.atomic():
        try:
            claims = references.verify(reference)
        except SignatureError:
            return gate.finish(Result.INVALID_SIGNATURE)

        if claims.event_id != event.id:
            return gate.finish(Result.WRONG_EVENT, notes=f"Ticket is for event {claims.event_id}.")

        ticket = Ticket.objects.full().filter(reference=reference, event=event).first()
        if ticket is None:
            return gate.finish(Result.NOT_FOUND)

        return _use_ticket(gate, ticket)


def _find_by_identifier(identifier: str) -> Ticket | None:
    """Manual lookup: a ticket's primary key, or its printed ticket number."""
    identifier = identifier.strip()
    try:
        return Ticket.objects.full().filter(pk=UUID(identifier)).first()
    except ValueError:
        return Ticket.objects.full().filter(ticket_number__iexact=identifier).first()


def validate_manual(identifier: str, event_id: UUID, validator: User) -> ValidationResult:
    """Validate a ticket typed in by gate staff instead of scanned.

    No signature is checked on this path, which is why every attempt is logged
    with ``method = manual``.

    Raises:
        NotFoundError: Unknown event.
        AuthorizationError: ``validator`` does not organize the event.
    """
    event = get_organized_event(validator, event_id)
    gate = _Gate(event=event, validator=validator, method=Method.MANUAL, presented=identifier)

    with transaction.atomic():
        ticket = _find_by_identifier(identifier)
        if ticket is None:
            return gate.finish(Result.NOT_FOUND)
        if ticket.event_id != event.id:
            return gate.finish(Result.WRONG_EVENT, ticket)
        return _use_ticket(gate, ticket)
