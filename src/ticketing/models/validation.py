import typing as t

from django.conf import settings
from django.db import models

from common.models import TimeStampedModel
from events.models import Event

from ..exceptions import ImmutableRecordError
from .ticket import Ticket


class ValidationAttempt(TimeStampedModel):
    """Append-only record of one gate scan, whatever its outcome."""

    class Result(models.TextChoices):
        VALID = "valid", "Valid"
        INVALID_SIGNATURE = "invalid_signature", "Invalid signature"
        WRONG_EVENT = "wrong_event", "Wrong event"
        NOT_FOUND = "not_found", "Not found"
        ALREADY_USED = "already_used", "Already used"
        INVALID = "invalid", "Invalid (cancelled)"

    class Method(models.TextChoices):
        QR_SCAN = "qr_scan", "QR scan"
        MANUAL = "manual", "Manual entry"

    ticket = models.ForeignKey(
        Ticket, on_delete=models.PROTECT, null=True, blank=True, related_name="validation_attempts"
    )
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="validation_attempts")
    validator = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="validation_attempts"
    )
    result = models.CharField(max_length=24, choices=Result.choices, db_index=True)
    method = models.CharField(max_length=16, choices=Method.choices, default=Method.QR_SCAN)
    presented_reference = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.get_method_display()} {self.result} @ {self.created_at:%Y-%m-%d %H:%M:%S}"

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Insert only: an attempt is never rewritten once recorded."""
        if not self._state.adding:
            raise ImmutableRecordError("Validation attempts cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args: t.Any, **kwargs: t.Any) -> tuple[int, dict[str, int]]:
        raise ImmutableRecordError("Validation attempts cannot be deleted.")
