"""Read-only lookups into the event directory.

Ticketing never edits events; it only needs to know who organizes one and which
category it is restricted to.
"""

from uuid import UUID

from accounts.models import User
from events.models import Event


def get_event(event_id: UUID) -> Event | None:
    """Fetch an event by id, or None if it does not exist."""
    return Event.objects.select_related("organizer").filter(pk=event_id).first()


def is_organizer(user: User, event: Event) -> bool:
    """True if ``user`` is the organizer who owns ``event``."""
    return bool(user.is_authenticated) and event.organizer_id == user.id
