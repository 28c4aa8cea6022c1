from django.conf import settings
from django.db import models

from common.models import TimeStampedModel


class Event(TimeStampedModel):
    """An event as seen by ticketing: who organizes it and which category it belongs to.

    Event editing happens elsewhere; ticketing only reads these rows.
    """

    class Status(models.TextChoices):
        UPCOMING = "upcoming", "Upcoming"
        ONGOING = "ongoing", "Ongoing"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    title = models.CharField(max_length=255)
    organizer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="organized_events")
    category = models.CharField(max_length=64, blank=True, db_index=True, help_text="Sport category, if any.")
    location = models.CharField(max_length=255, blank=True)
    starts_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.UPCOMING, db_index=True)

    class Meta:
        ordering = ["-starts_at", "title"]

    def __str__(self) -> str:
        return self.title
