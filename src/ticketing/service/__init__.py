import typing as t
from uuid import UUID

from django.db import models, transaction
from pydantic import BaseModel

from accounts.models import User
from events.models import Event
from events.service import event_directory

from ..exceptions import AuthorizationError, NotFoundError

T = t.TypeVar("T", bound=models.Model)


def get_event_or_404(event_id: UUID) -> Event:
    event = event_directory.get_event(event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    return event


def assert_organizer(user: User, event: Event) -> None:
    """Raise unless ``user`` organizes ``event``.

    Raises:
        AuthorizationError: For anyone but the event's organizer.
    """
    if not event_directory.is_organizer(user, event):
        raise AuthorizationError("Only the event organizer can do this.")


def get_organized_event(user: User, event_id: UUID) -> Event:
    """Fetch an event the user organizes, or raise NotFoundError / AuthorizationError."""
    event = get_event_or_404(event_id)
    assert_organizer(user, event)
    return event


@transaction.atomic
def update_db_instance(
    instance: T, payload: BaseModel | None = None, *, exclude_unset: bool = True, **kwargs: t.Any
) -> T:
    """Updates a DB instance given a Pydantic payload, safely within a select_for_update lock."""
    instance = instance.__class__.objects.select_for_update().get(pk=instance.pk)  # type: ignore[attr-defined]
    data = payload.model_dump(exclude_unset=exclude_unset) if payload else {}
    data.update(**kwargs)
    for key, value in data.items():
        setattr(instance, key, value)
    instance.save()
    return instance
