"""Order state machine operations.

Every mutation re-reads the order under ``select_for_update`` inside its own short
transaction and asks ``state_machine.next_status`` whether the move is legal, so
two concurrent calls can never both apply a transition. Authorization is always
checked against the stored event and order, never against anything the client
claims.
"""

import typing as t
from dataclasses import dataclass, field
from uuid import UUID

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from PIL import Image, UnidentifiedImageError

from accounts.models import User
from common.blob_store import BlobStoreError, blob_store
from common.utils import SanitizedImage, strip_exif

from ..exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from ..models import Order, PaymentMethod, Ticket, TicketType
from ..state_machine import OrderAction, OrderStatus, next_status
from . import assert_organizer, get_event_or_404, get_organized_event, inventory, references, ticket_issuer
from .eligibility import assert_eligible

logger = structlog.get_logger(__name__)

PAYMENT_DETAIL_KEYS = ("transaction_id", "paid_at", "notes", "holder_name", "holder_email", "holder_phone")
ALLOWED_PROOF_FORMATS = {"JPEG", "PNG", "WEBP"}


@dataclass(frozen=True)
class VerificationOutcome:
    order: Order
    tickets: list[Ticket] = field(default_factory=list)


# --- create ---


def create_order(
    buyer: User,
    *,
    event_id: UUID,
    ticket_type_id: UUID,
    quantity: int,
    payment_method_id: UUID,
) -> Order:
    """Reserve inventory and open a ``pending_payment`` order.

    The reservation and the order row are written in the same transaction: if the
    reservation fails, no order exists.

    Raises:
        ValidationError: quantity < 1, or ticket sales are closed.
        NotFoundError: unknown event, or a ticket type / payment method of another event.
        IneligibleBuyerError: the buyer may not buy tickets for this event.
        OversoldError: not enough tickets left.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")

    event = get_event_or_404(event_id)
    assert_eligible(buyer, event)

    ticket_type = TicketType.objects.filter(pk=ticket_type_id, event=event).first()
    if ticket_type is None:
        raise NotFoundError("Ticket type not found for this event.")
    payment_method = PaymentMethod.objects.active().filter(pk=payment_method_id, event=event).first()
    if payment_method is None:
        raise NotFoundError("Payment method not found for this event.")

    with transaction.atomic():
        reservation = inventory.reserve(ticket_type.id, quantity)
        order = Order.objects.create(
            event=event,
            ticket_type=ticket_type,
            buyer=buyer,
            payment_method=payment_method,
            quantity=quantity,
            total_amount=ticket_type.price * quantity,
            status=OrderStatus.PENDING_PAYMENT,
        )

    logger.info(
        "order.created",
        order_id=str(order.id),
        event_id=str(event.id),
        ticket_type_id=str(ticket_type.id),
        quantity=quantity,
        reservation_id=str(reservation.id),
    )
    return order


# --- submit proof ---


def clean_payment_details(details: dict[str, t.Any]) -> dict[str, str]:
    """Keep the known payment detail keys, as stripped strings.

    Raises:
        ValidationError: If ``holder_email`` is present but not an e-mail address.
    """
    cleaned = {key: str(details[key]).strip() for key in PAYMENT_DETAIL_KEYS if details.get(key) not in (None, "")}
    if email := cleaned.get("holder_email"):
        try:
            validate_email(email)
        except DjangoValidationError:
            raise ValidationError("holder_email is not a valid e-mail address.") from None
    return cleaned


def sanitize_proof(data: bytes) -> SanitizedImage:
    """Check that the proof is a reasonably sized image and strip its metadata.

    Raises:
        ValidationError: If the file is empty, too large or not a supported image.
    """
    if not data:
        raise ValidationError("The payment proof file is empty.")
    if len(data) > settings.PAYMENT_PROOF_MAX_BYTES:
        raise ValidationError("The payment proof file is too large.")
    try:
        image = strip_exif(data)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        raise ValidationError("The payment proof must be a JPEG, PNG or WebP image.") from None
    if image.format not in ALLOWED_PROOF_FORMATS:
        raise ValidationError("The payment proof must be a JPEG, PNG or WebP image.")
    return image


def _get_buyer_order(buyer: User, order_id: UUID, *, lock: bool = False) -> Order:
    qs = Order.objects.select_for_update() if lock else Order.objects.all()
    order = qs.filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found.")
    if order.buyer_id != buyer.id:
        raise AuthorizationError("This order belongs to someone else.")
    return order


def submit_payment_proof(buyer: User, order_id: UUID, payment_details: dict[str, t.Any], proof: bytes) -> Order:
    """Attach payment details and a proof image, moving the order to ``pending_verification``.

    The proof is uploaded first, with no lock held; the status change then happens
    in a second, short transaction. If the upload fails the order is untouched. If
    the upload succeeds and the transition fails (e.g. a concurrent submission won)
    the blob is orphaned and the order is unchanged: the client may simply retry.

    Raises:
        NotFoundError: unknown order.
        AuthorizationError: the order belongs to someone else.
        StateConflictError: the order is not ``pending_payment``.
        ValidationError: bad details or proof file.
        StorageError: the blob store failed; safe to retry.
    """
    order = _get_buyer_order(buyer, order_id)
    next_status(order.status, OrderAction.SUBMIT_PROOF)  # fail fast, before uploading anything
    details = clean_payment_details(payment_details)
    image = sanitize_proof(proof)

    try:
        key = blob_store.put(image.data, folder=f"payment_proofs/{order.id}", extension=image.extension)
    except BlobStoreError as exc:
        logger.warning("order.proof_upload_failed", order_id=str(order.id))
        raise StorageError() from exc

    with transaction.atomic():
        order = _get_buyer_order(buyer, order_id, lock=True)
        order.status = next_status(order.status, OrderAction.SUBMIT_PROOF)
        order.payment_details = details
        order.payment_proof = key
        order.proof_submitted_at = timezone.now()
        order.save(update_fields=["status", "payment_details", "payment_proof", "proof_submitted_at", "updated_at"])

    logger.info("order.proof_submitted", order_id=str(order.id), proof_key=key)
    return order


# --- verify ---


def verify_payment(organizer: User, order_id: UUID, action: str, reason: str | None = None) -> VerificationOutcome:
    """Approve or reject a ``pending_verification`` order.

    Approving moves the order to ``paid`` and mints its tickets; the ledger is
    untouched because the units were reserved at creation. Rejecting moves it to
    ``rejected`` and releases the reservation. Either way everything happens in one
    transaction.

    Raises:
        ValidationError: unknown action, or a rejection without a reason.
        NotFoundError: unknown order.
        AuthorizationError: the actor does not organize the order's event.
        StateConflictError: the order is not ``pending_verification``.
    """
    if action not in (OrderAction.APPROVE, OrderAction.REJECT):
        raise ValidationError("Action must be 'approve' or 'reject'.")

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        assert_organizer(organizer, order.event)

        new_status = next_status(order.status, action)
        now = timezone.now()
        order.status = new_status
        order.verified_by = organizer
        order.verified_at = now

        if action == OrderAction.APPROVE:
            issued_at_ms = references.issued_at_ms(now)
            order.ticket_code = ticket_issuer.generate_ticket_code(issued_at_ms)
            order.save(update_fields=["status", "verified_by", "verified_at", "ticket_code", "updated_at"])
            tickets = ticket_issuer.issue(order, issued_at_ms=issued_at_ms)
            logger.info("order.approved", order_id=str(order.id), tickets_issued=len(tickets))
            return VerificationOutcome(order=order, tickets=tickets)

        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reject a payment.")
        order.rejection_reason = reason
        order.save(update_fields=["status", "verified_by", "verified_at", "rejection_reason", "updated_at"])
        inventory.release(order.ticket_type_id, order.quantity)
        logger.info("order.rejected", order_id=str(order.id), quantity=order.quantity)
        return VerificationOutcome(order=order)


# --- reads ---


def list_buyer_orders(buyer: User) -> QuerySet[Order]:
    return Order.objects.for_buyer(buyer.id).full()


def get_order_for_buyer(buyer: User, order_id: UUID) -> Order:
    """Fetch one of the buyer's orders.

    Raises:
        NotFoundError: unknown order.
        AuthorizationError: someone else's order.
    """
    return _get_buyer_order(buyer, order_id)


def list_pending_verification(organizer: User, event_id: UUID) -> QuerySet[Order]:
    """The organizer's verification queue for one event, oldest submission first."""
    event = get_organized_event(organizer, event_id)
    return Order.objects.filter(event=event).awaiting_verification().full().order_by("proof_submitted_at")


def list_event_orders(organizer: User, event_id: UUID, status: str | None = None) -> QuerySet[Order]:
    event = get_organized_event(organizer, event_id)
    qs = Order.objects.filter(event=event).full()
    if status:
        qs = qs.filter(status=status)
    return qs


def get_order_for_organizer(organizer: User, order_id: UUID) -> Order:
    """Fetch an order of one of the organizer's events.

    Raises:
        NotFoundError: unknown order.
        AuthorizationError: the order belongs to an event the actor does not organize.
    """
    order = Order.objects.full().filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found.")
    assert_organizer(organizer, order.event)
    return order


def get_proof_url(organizer: User, order_id: UUID) -> str:
    """A signed, expiring URL for the order's proof image.

    Raises:
        NotFoundError: unknown order, or no proof submitted yet.
        AuthorizationError: the actor does not organize the order's event.
    """
    order = get_order_for_organizer(organizer, order_id)
    if not order.payment_proof:
        raise NotFoundError("No payment proof was submitted for this order.")
    return blob_store.url(order.payment_proof, expires_in=settings.PROOF_URL_EXPIRES_IN)
