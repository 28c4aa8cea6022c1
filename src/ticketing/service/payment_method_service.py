"""Organizer-managed payment methods, written as one tagged variant at a time."""

import typing as t
from uuid import UUID

import structlog
from django.db.models import QuerySet

from accounts.models import User

from ..exceptions import NotFoundError
from ..models import PaymentMethod
from . import get_event_or_404, get_organized_event, update_db_instance

logger = structlog.get_logger(__name__)

_VARIANT_COLUMNS = (*PaymentMethod.ALL_VARIANT_FIELDS, "instructions")


def _variant_data(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Flatten a variant payload into model columns, blanking the other variants' fields."""
    cleaned = {key: value for key, value in data.items() if key not in ("id", "event", "event_id")}
    for column in _VARIANT_COLUMNS:
        cleaned[column] = cleaned.get(column) or ""
    return cleaned


def list_payment_methods(organizer: User, event_id: UUID) -> QuerySet[PaymentMethod]:
    event = get_organized_event(organizer, event_id)
    return PaymentMethod.objects.filter(event=event)


def list_active(event_id: UUID) -> QuerySet[PaymentMethod]:
    """What buyers can pay with for an event."""
    event = get_event_or_404(event_id)
    return PaymentMethod.objects.active().filter(event=event)


def get_payment_method(organizer: User, event_id: UUID, payment_method_id: UUID) -> PaymentMethod:
    event = get_organized_event(organizer, event_id)
    method = PaymentMethod.objects.filter(pk=payment_method_id, event=event).first()
    if method is None:
        raise NotFoundError("Payment method not found for this event.")
    return method


def create_payment_method(organizer: User, event_id: UUID, data: dict[str, t.Any]) -> PaymentMethod:
    """Create a payment method. ``data`` holds exactly one variant, tagged by ``kind``."""
    event = get_organized_event(organizer, event_id)
    method = PaymentMethod.objects.create(event=event, **_variant_data(data))
    logger.info("payment_method.created", payment_method_id=str(method.id), kind=method.kind)
    return method


def update_payment_method(
    organizer: User, event_id: UUID, payment_method_id: UUID, data: dict[str, t.Any]
) -> PaymentMethod:
    """Replace a payment method's variant. Switching ``kind`` clears the old variant's fields."""
    method = get_payment_method(organizer, event_id, payment_method_id)
    method = update_db_instance(method, **_variant_data(data))
    logger.info("payment_method.updated", payment_method_id=str(method.id), kind=method.kind)
    return method


def deactivate_payment_method(organizer: User, event_id: UUID, payment_method_id: UUID) -> PaymentMethod:
    """Hide a method from buyers. Existing orders keep pointing at it."""
    method = get_payment_method(organizer, event_id, payment_method_id)
    method = update_db_instance(method, is_active=False)
    logger.info("payment_method.deactivated", payment_method_id=str(method.id))
    return method
