import typing as t
from io import BytesIO

import pytest
from PIL import Image

from accounts.models import User
from events.models import Event
from ticketing.models import Order, PaymentMethod, Ticket, TicketType
from ticketing.service import order_service


def make_png(size: tuple[int, int] = (8, 8), color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_jpeg_with_exif() -> bytes:
    image = Image.new("RGB", (8, 8), color="blue")
    exif = Image.Exif()
    exif[0x010F] = "SecretCameraMaker"  # Make
    buffer = BytesIO()
    image.save(buffer, format="JPEG", exif=exif.tobytes())
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


OrderFactory = t.Callable[..., Order]


@pytest.fixture
def order_factory(event: Event, ticket_type: TicketType, payment_method: PaymentMethod, buyer: User) -> OrderFactory:
    """Create orders through the service, so inventory is reserved like in production."""

    def _create(quantity: int = 1, user: User | None = None) -> Order:
        return order_service.create_order(
            user or buyer,
            event_id=event.id,
            ticket_type_id=ticket_type.id,
            quantity=quantity,
            payment_method_id=payment_method.id,
        )

    return _create


@pytest.fixture
def pending_order(order_factory: OrderFactory) -> Order:
    """An order awaiting payment, for 2 tickets."""
    return order_factory(quantity=2)


@pytest.fixture
def submitted_order(pending_order: Order, buyer: User, png_bytes: bytes) -> Order:
    """An order awaiting verification."""
    return order_service.submit_payment_proof(
        buyer, pending_order.id, {"transaction_id": "TX-1", "holder_name": "Ayesha Khan"}, png_bytes
    )


@pytest.fixture
def paid_order(submitted_order: Order, organizer: User) -> Order:
    """An approved order with its 2 tickets issued."""
    return order_service.verify_payment(organizer, submitted_order.id, "approve").order


@pytest.fixture
def ticket(paid_order: Order) -> Ticket:
    """The first ticket of ``paid_order``."""
    return Ticket.objects.full().get(order=paid_order, sequence=1)


@pytest.fixture
def jpeg_with_exif() -> bytes:
    return make_jpeg_with_exif()
