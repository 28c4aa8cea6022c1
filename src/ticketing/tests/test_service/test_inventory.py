import threading
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import close_old_connections, connection
from django.utils import timezone
from freezegun import freeze_time

from events.models import Event
from ticketing.exceptions import NotFoundError, OversoldError, ValidationError
from ticketing.models import TicketType
from ticketing.service import inventory

pytestmark = pytest.mark.django_db


def test_reserve_increments_sold_count(ticket_type: TicketType) -> None:
    reservation = inventory.reserve(ticket_type.id, 3)

    ticket_type.refresh_from_db()
    assert ticket_type.sold_count == 3
    assert ticket_type.available == 7
    assert reservation.ticket_type_id == ticket_type.id
    assert reservation.quantity == 3


def test_reserve_up_to_exact_capacity(ticket_type: TicketType) -> None:
    inventory.reserve(ticket_type.id, 10)

    ticket_type.refresh_from_db()
    assert ticket_type.sold_count == ticket_type.total_quantity


def test_reserve_beyond_capacity_is_refused_and_changes_nothing(ticket_type: TicketType) -> None:
    inventory.reserve(ticket_type.id, 8)

    with pytest.raises(OversoldError):
        inventory.reserve(ticket_type.id, 3)

    ticket_type.refresh_from_db()
    assert ticket_type.sold_count == 8


def test_sequential_reservations_never_oversell(ticket_type: TicketType) -> None:
    successes = 0
    for _ in range(15):
        try:
            inventory.reserve(ticket_type.id, 1)
            successes += 1
        except OversoldError:
            pass

    ticket_type.refresh_from_db()
    assert successes == 10
    assert ticket_type.sold_count == 10


@pytest.mark.parametrize("quantity", [0, -1])
def test_reserve_rejects_non_positive_quantity(ticket_type: TicketType, quantity: int) -> None:
    with pytest.raises(ValidationError):
        inventory.reserve(ticket_type.id, quantity)


def test_reserve_unknown_ticket_type() -> None:
    with pytest.raises(NotFoundError):
        inventory.reserve(uuid.uuid4(), 1)


def test_reserve_inactive_ticket_type(ticket_type: TicketType) -> None:
    ticket_type.is_active = False
    ticket_type.save()

    with pytest.raises(ValidationError, match="inactive"):
        inventory.reserve(ticket_type.id, 1)


def test_reserve_respects_sale_window(event: Event) -> None:
    now = timezone.now()
    ticket_type = TicketType.objects.create(
        event=event,
        name="Early bird",
        price=Decimal("500"),
        total_quantity=5,
        sales_start_at=now + timedelta(days=1),
        sales_end_at=now + timedelta(days=2),
    )

    with pytest.raises(ValidationError, match="not_started"):
        inventory.reserve(ticket_type.id, 1)

    with freeze_time(now + timedelta(days=1, hours=1)):
        inventory.reserve(ticket_type.id, 1)

    with freeze_time(now + timedelta(days=3)):
        with pytest.raises(ValidationError, match="ended"):
            inventory.reserve(ticket_type.id, 1)

    ticket_type.refresh_from_db()
    assert ticket_type.sold_count == 1


def test_release_restores_capacity(ticket_type: TicketType) -> None:
    inventory.reserve(ticket_type.id, 10)
    inventory.release(ticket_type.id, 4)

    ticket_type.refresh_from_db()
    assert ticket_type.sold_count == 6
    inventory.reserve(ticket_type.id, 4)


def test_release_never_goes_below_zero(ticket_type: TicketType) -> None:
    inventory.reserve(ticket_type.id, 2)
    inventory.release(ticket_type.id, 5)

    ticket_type.refresh_from_db()
    assert ticket_type.sold_count == 0


def test_release_unknown_ticket_type() -> None:
    with pytest.raises(NotFoundError):
        inventory.release(uuid.uuid4(), 1)


@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(connection.vendor != "postgresql", reason="Needs real row locks")
def test_concurrent_reservations_never_oversell(ticket_type: TicketType) -> None:
    """Twenty threads race for ten tickets: exactly ten reservations win."""
    results: list[str] = []
    lock = threading.Lock()
    barrier = threading.Barrier(20)

    def worker() -> None:
        barrier.wait()
        try:
            inventory.reserve(ticket_type.id, 1)
            outcome = "ok"
        except OversoldError:
            outcome = "oversold"
        finally:
            close_old_connections()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    ticket_type.refresh_from_db()
    assert results.count("ok") == 10
    assert results.count("oversold") == 10
    assert ticket_type.sold_count == 10
