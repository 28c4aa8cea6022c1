import re
import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models

# A category value meaning "no restriction" for athletes and reporters.
UNRESTRICTED_CATEGORY = "all"


class User(AbstractUser):
    class Role(models.TextChoices):
        ORGANIZER = "organizer", "Organizer"
        ATHLETE = "athlete", "Athlete"
        REPORTER = "reporter", "Reporter"
        VIEWER = "viewer", "Viewer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.VIEWER, db_index=True)
    category = models.CharField(
        max_length=64,
        blank=True,
        help_text="Sport category athletes and reporters follow. Empty or 'All' means any event.",
    )
    preferred_name = models.CharField(db_index=True, max_length=255, blank=True, help_text="Preferred name")
    phone_number = models.CharField(max_length=20, blank=True, help_text="Phone number")

    class Meta:
        ordering = ["username"]

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_display_name()

    def get_display_name(self) -> str:
        """Returns the user's preferred name, or their full name as a fallback."""
        return (
            self.preferred_name or self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()
        )

    @property
    def is_organizer(self) -> bool:
        return self.role == self.Role.ORGANIZER

    @property
    def restricted_category(self) -> str | None:
        """The only event category this user may buy tickets for, if any.

        Viewers and organizers are never restricted; athletes and reporters are
        restricted to their category unless it is blank or "All".
        """
        if self.role not in (self.Role.ATHLETE, self.Role.REPORTER):
            return None
        category = self.category.strip()
        if not category or category.lower() == UNRESTRICTED_CATEGORY:
            return None
        return category
