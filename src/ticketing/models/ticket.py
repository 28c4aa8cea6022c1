import typing as t

from django.conf import settings
from django.db import models

from common.models import TimeStampedModel
from events.models import Event

from .order import Order
from .ticket_type import TicketType


class TicketQuerySet(models.QuerySet["Ticket"]):
    def full(self) -> t.Self:
        return self.select_related("event", "ticket_type", "user", "order", "validated_by")

    def for_user(self, user_id: object) -> t.Self:
        return self.filter(user_id=user_id)


class Ticket(TimeStampedModel):
    """One admission unit minted from a paid order.

    The status doubles as a lock: the validator may only move a ticket from
    ``active`` to ``used``, once, and a used ticket never changes again.
    """

    class TicketStatus(models.TextChoices):
        ACTIVE = "active", "Active"
        USED = "used", "Used"
        CANCELLED = "cancelled", "Cancelled"

    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name="tickets")
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="tickets")
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name="tickets")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="tickets")
    sequence = models.PositiveIntegerField()
    ticket_number = models.CharField(max_length=80, unique=True)
    reference = models.CharField(max_length=255, unique=True, editable=False)
    holder_name = models.CharField(max_length=255, blank=True)
    holder_email = models.EmailField(blank=True)
    holder_phone = models.CharField(max_length=32, blank=True)
    status = models.CharField(
        max_length=16, choices=TicketStatus.choices, default=TicketStatus.ACTIVE, db_index=True
    )
    is_used = models.BooleanField(default=False)
    used_at = models.DateTimeField(null=True, blank=True)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="validated_tickets",
    )

    objects = TicketQuerySet.as_manager()

    class Meta:
        ordering = ["order", "sequence"]
        constraints = [
            models.UniqueConstraint(fields=["order", "sequence"], name="unique_ticket_sequence_per_order"),
            models.CheckConstraint(
                condition=(
                    models.Q(is_used=False, used_at__isnull=True)
                    | models.Q(is_used=True, status="used", used_at__isnull=False)
                ),
                name="ticket_used_flag_matches_status",
            ),
        ]

    def __str__(self) -> str:
        return self.ticket_number
