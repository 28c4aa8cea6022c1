import typing as t

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from common.models import TimeStampedModel
from events.models import Event

from ..exceptions import ImmutableRecordError
from ..state_machine import OrderStatus
from .payment_method import PaymentMethod
from .ticket_type import TicketType


class OrderQuerySet(models.QuerySet["Order"]):
    def for_buyer(self, user_id: object) -> t.Self:
        return self.filter(buyer_id=user_id)

    def awaiting_verification(self) -> t.Self:
        return self.filter(status=OrderStatus.PENDING_VERIFICATION)

    def full(self) -> t.Self:
        return self.select_related("event", "ticket_type", "buyer", "payment_method", "verified_by")


class Order(TimeStampedModel):
    """One buyer's purchase of ``quantity`` units of a ticket type.

    Only ``ticketing.service.order_service`` mutates orders, through the transitions
    in ``ticketing.state_machine``. Orders are the audit trail of a purchase and are
    never deleted.
    """

    Status = OrderStatus

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="orders")
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name="orders")
    buyer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="ticket_orders")
    payment_method = models.ForeignKey(PaymentMethod, on_delete=models.PROTECT, related_name="orders")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=24, choices=OrderStatus.choices, default=OrderStatus.PENDING_PAYMENT, db_index=True
    )
    payment_details = models.JSONField(default=dict, blank=True)
    payment_proof = models.CharField(max_length=500, blank=True, help_text="Blob store key of the proof image.")
    proof_submitted_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="verified_orders",
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    ticket_code = models.CharField(max_length=64, unique=True, null=True, blank=True)

    objects = OrderQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name="order_quantity_at_least_one"),
        ]

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"

    def delete(self, *args: t.Any, **kwargs: t.Any) -> tuple[int, dict[str, int]]:
        raise ImmutableRecordError("Orders are never deleted.")
