"""Tests for how errors are turned into responses and tracked."""

from unittest.mock import patch

import orjson
import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import RequestFactory
from django.test.client import Client
from django.urls import reverse

from api.exception_handlers import (
    handle_django_validation_error,
    handle_ticketing_error,
    obfuscate,
)
from api.models import Error, ErrorOccurrence
from api.tasks import track_internal_error
from ticketing.exceptions import IneligibleBuyerError, NotFoundError, StorageError

pytestmark = pytest.mark.django_db


@pytest.fixture
def rf() -> RequestFactory:
    return RequestFactory()


class TestTicketingErrors:
    def test_typed_body(self, rf: RequestFactory) -> None:
        response = handle_ticketing_error(rf.get("/api/orders/x"), NotFoundError("Order not found."))

        assert response.status_code == 404
        assert orjson.loads(response.content) == {
            "error": "not_found",
            "detail": "Order not found.",
            "retryable": False,
        }

    def test_retryable(self, rf: RequestFactory) -> None:
        response = handle_ticketing_error(rf.post("/api/orders/x/payment-proof"), StorageError())

        assert response.status_code == 503
        assert orjson.loads(response.content)["retryable"] is True

    def test_reason_is_included(self, rf: RequestFactory) -> None:
        exc = IneligibleBuyerError(IneligibleBuyerError.OWN_EVENT, "You cannot purchase tickets for your own event.")

        response = handle_ticketing_error(rf.post("/api/orders/"), exc)

        assert response.status_code == 403
        assert orjson.loads(response.content)["reason"] == "own_event"


class TestDjangoValidationErrors:
    def test_field_errors(self, rf: RequestFactory) -> None:
        exc = DjangoValidationError({"total_quantity": ["Too low."], "name": ["Required.", "Too short."]})

        response = handle_django_validation_error(rf.patch("/"), exc)

        assert response.status_code == 400
        assert orjson.loads(response.content) == {
            "errors": {"total_quantity": ["Too low."], "name": ["Required.", "Too short."]}
        }

    def test_plain_message(self, rf: RequestFactory) -> None:
        response = handle_django_validation_error(rf.patch("/"), DjangoValidationError("Nope."))

        assert orjson.loads(response.content) == {"errors": {"__all__": ["Nope."]}}


class TestInternalErrors:
    def test_unexpected_exception_is_a_generic_500(self, buyer_client: Client) -> None:
        with (
            patch("ticketing.controllers.tickets.ticket_service.list_user_tickets", side_effect=RuntimeError("boom")),
            patch("api.exception_handlers.track_internal_error") as track,
        ):
            response = buyer_client.get(reverse("api:list_my_tickets"))

        assert response.status_code == 500
        assert response.json() == {"error": "internal", "detail": "Internal Server Error.", "retryable": False}
        track.delay.assert_called_once()
        kwargs = track.delay.call_args.kwargs
        assert kwargs["path"] == "GET /api/tickets/"
        assert "RuntimeError: boom" in kwargs["traceback_str"]
        assert kwargs["metadata"]["headers"]["Authorization"] == "********"

    def test_same_traceback_is_grouped(self) -> None:
        for _ in range(3):
            track_internal_error(
                path="POST /api/orders/",
                traceback_str="Traceback...\nRuntimeError: boom",
                json_payload={"quantity": 1},
                metadata={"method": "POST"},
            )
        track_internal_error(path="GET /api/tickets/", traceback_str="Traceback...\nKeyError: 'x'")

        assert Error.objects.count() == 2
        error = Error.objects.get(path="POST /api/orders/")
        assert error.occurrence_count == 3
        assert error.json_payload == {"quantity": 1}
        assert ErrorOccurrence.objects.count() == 4

    def test_raw_payload_is_decoded(self) -> None:
        track_internal_error(path="POST /x", traceback_str="tb", encoded_payload="aGVsbG8=")

        assert bytes(Error.objects.get().payload) == b"hello"


def test_obfuscate_hides_credentials_and_references() -> None:
    data = {"Authorization": "Bearer x", "reference": "gp1.a.b", "refresh": "r", "quantity": 2}

    assert obfuscate(data) == {
        "Authorization": "********",
        "reference": "********",
        "refresh": "********",
        "quantity": 2,
    }
    assert data["reference"] == "gp1.a.b"
