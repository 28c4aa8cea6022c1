import typing as t
from datetime import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel
from events.models import Event


class TicketType(TimeStampedModel):
    """A priced admission category with a fixed inventory cap.

    ``sold_count`` is owned by ``ticketing.service.inventory``: nothing else writes it.
    """

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="ticket_types")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    total_quantity = models.PositiveIntegerField()
    sold_count = models.PositiveIntegerField(default=0, editable=False)
    sales_start_at = models.DateTimeField(null=True, blank=True)
    sales_end_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["event", "price", "name"]
        constraints = [
            models.UniqueConstraint(fields=["event", "name"], name="unique_ticket_type_name_per_event"),
            models.CheckConstraint(
                condition=models.Q(sold_count__lte=models.F("total_quantity")),
                name="ticket_type_sold_count_within_total",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event} - {self.name}"

    def clean(self) -> None:
        """Validate the sale window and that the cap never drops below what was sold."""
        super().clean()
        if self.sales_start_at and self.sales_end_at and self.sales_start_at >= self.sales_end_at:
            raise ValidationError({"sales_end_at": ["Sales must end after they start."]})
        if self.total_quantity is not None and self.total_quantity < self.sold_count:
            raise ValidationError({"total_quantity": ["Total quantity cannot be lower than the tickets already sold."]})

    @property
    def available(self) -> int:
        return max(self.total_quantity - self.sold_count, 0)

    def is_on_sale(self, at: datetime | None = None) -> bool:
        """True if the type is active and ``at`` (default: now) falls in its sale window."""
        return self.sale_status(at) == "on_sale"

    def sale_status(self, at: datetime | None = None) -> t.Literal["on_sale", "not_started", "ended", "inactive"]:
        at = at or timezone.now()
        if not self.is_active:
            return "inactive"
        if self.sales_start_at and at < self.sales_start_at:
            return "not_started"
        if self.sales_end_at and at > self.sales_end_at:
            return "ended"
        return "on_sale"
