"""Tests for the entry validation endpoints."""

import typing as t
import uuid

import orjson
import pytest
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.test.client import Client

from accounts.models import User
from events.models import Event
from ticketing.models import Ticket, ValidationAttempt
from ticketing.service import references, ticket_service

pytestmark = pytest.mark.django_db


def _validate(client: Client, reference: str, event: Event, **extra: str) -> t.Any:
    return client.post(
        reverse("api:validate_ticket"),
        data=orjson.dumps({"reference": reference, "event_id": str(event.id), **extra}),
        content_type="application/json",
    )


def test_validate_then_already_used(
    organizer_client: Client, organizer: User, ticket: Ticket, event: Event
) -> None:
    response = _validate(organizer_client, ticket.reference, event)

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["reason"] is None
    assert data["attempt_id"] == str(ValidationAttempt.objects.get().id)
    assert data["ticket"]["ticket_number"] == ticket.ticket_number
    assert data["ticket"]["ticket_type_name"] == "General"
    assert data["ticket"]["status"] == Ticket.TicketStatus.USED
    assert data["ticket"]["used_at"] is not None
    assert "reference" not in data["ticket"]

    again = _validate(organizer_client, ticket.reference, event)

    assert again.status_code == 200
    data = again.json()
    assert data["valid"] is False
    assert data["reason"] == ValidationAttempt.Result.ALREADY_USED
    assert data["ticket"]["validated_by_id"] == str(organizer.id)
    assert data["ticket"]["validated_by_name"] == organizer.display_name
    assert data["ticket"]["used_at"] == response.json()["ticket"]["used_at"]


def test_wrong_event(organizer_client: Client, organizer: User, ticket: Ticket) -> None:
    second_event = Event.objects.create(title="Second race", organizer=organizer)

    response = _validate(organizer_client, ticket.reference, second_event)

    assert response.status_code == 200
    assert response.json()["reason"] == ValidationAttempt.Result.WRONG_EVENT
    assert response.json()["ticket"] is None


def test_signed_but_unknown(organizer_client: Client, buyer: User, event: Event) -> None:
    reference = references.sign(uuid.uuid4(), event.id, buyer.id, 1, references.issued_at_ms())

    response = _validate(organizer_client, reference, event)

    assert response.status_code == 200
    assert response.json()["reason"] == ValidationAttempt.Result.NOT_FOUND


def test_cancelled_ticket(organizer_client: Client, organizer: User, ticket: Ticket, event: Event) -> None:
    ticket_service.cancel_ticket(organizer, ticket.id)

    response = _validate(organizer_client, ticket.reference, event)

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["reason"] == ValidationAttempt.Result.INVALID
    assert data["ticket"]["status"] == Ticket.TicketStatus.CANCELLED
    assert data["ticket"]["validated_by_id"] is None


def test_forged_reference_is_refused(organizer_client: Client, ticket: Ticket, event: Event) -> None:
    version, order_id, event_id, buyer_id, _sequence, issued_at, digest = ticket.reference.split(".")
    forged = ".".join([version, order_id, event_id, buyer_id, "7", issued_at, digest])

    response = _validate(organizer_client, forged, event)

    assert response.status_code == 200
    assert response.json() == {
        "valid": False,
        "reason": ValidationAttempt.Result.INVALID_SIGNATURE,
        "ticket": None,
        "attempt_id": str(ValidationAttempt.objects.get().id),
    }


def test_manual_entry(organizer_client: Client, ticket: Ticket, event: Event) -> None:
    response = _validate(organizer_client, ticket.ticket_number, event, method="manual")

    assert response.status_code == 200
    assert response.json()["valid"] is True
    assert response.json()["ticket"]["id"] == str(ticket.id)
    assert ValidationAttempt.objects.get().method == ValidationAttempt.Method.MANUAL


def test_manual_entry_for_another_event(organizer_client: Client, organizer: User, ticket: Ticket) -> None:
    second_event = Event.objects.create(title="Second race", organizer=organizer)

    response = _validate(organizer_client, ticket.ticket_number, second_event, method="manual")

    assert response.status_code == 200
    data = response.json()
    assert data["reason"] == ValidationAttempt.Result.WRONG_EVENT
    assert data["ticket"]["ticket_number"] == ticket.ticket_number
    ticket.refresh_from_db()
    assert ticket.is_used is False


def test_manual_entry_unknown(organizer_client: Client, event: Event) -> None:
    response = _validate(organizer_client, "TKT-0-NOPE-1", event, method="manual")

    assert response.status_code == 200
    assert response.json()["reason"] == ValidationAttempt.Result.NOT_FOUND
    assert response.json()["ticket"] is None


def test_buyer_cannot_validate(buyer_client: Client, ticket: Ticket, event: Event) -> None:
    response = _validate(buyer_client, ticket.reference, event)

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"
    ticket.refresh_from_db()
    assert ticket.is_used is False


def test_other_organizer_cannot_validate(other_organizer_client: Client, ticket: Ticket, event: Event) -> None:
    response = _validate(other_organizer_client, ticket.reference, event)

    assert response.status_code == 403


def test_empty_reference_is_rejected(organizer_client: Client, event: Event) -> None:
    response = _validate(organizer_client, "", event)

    assert response.status_code == 422
    assert not ValidationAttempt.objects.exists()


def test_validation_history(organizer_client: Client, buyer_client: Client, ticket: Ticket, event: Event) -> None:
    _validate(organizer_client, "nonsense", event)
    _validate(organizer_client, ticket.reference, event)
    url = reverse("api:list_validation_attempts", kwargs={"event_id": event.id})

    response = organizer_client.get(url)

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert {row["result"] for row in data["results"]} == {"valid", "invalid_signature"}

    filtered = organizer_client.get(url, {"result": "valid"}).json()
    assert filtered["count"] == 1
    assert filtered["results"][0]["ticket_id"] == str(ticket.id)

    assert buyer_client.get(url).status_code == 403
