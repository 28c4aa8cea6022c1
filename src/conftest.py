"""
Fixtures shared by every app: users, events, ticket types, payment methods and API clients.
"""

import secrets
import string
import typing as t
from datetime import timedelta
from decimal import Decimal

import faker
import pytest
from django.core.files.storage import InMemoryStorage
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken
from pytest import MonkeyPatch

from accounts.models import User
from events.models import Event
from ticketing.models import PaymentMethod, TicketType


@pytest.fixture(autouse=True)
def increase_rate_limit(monkeypatch: MonkeyPatch) -> None:
    """Raise the throttles so tests never hit them."""
    monkeypatch.setattr("common.throttling.AnonDefaultThrottle.rate", "10000/min")
    monkeypatch.setattr("common.throttling.UserDefaultThrottle.rate", "10000/min")
    monkeypatch.setattr("common.throttling.WriteThrottle.rate", "10000/min")
    monkeypatch.setattr("common.throttling.GateThrottle.rate", "10000/min")


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(autouse=True)
def in_memory_blob_storage(monkeypatch: MonkeyPatch) -> InMemoryStorage:
    """Keep uploaded proofs out of MEDIA_ROOT."""
    storage = InMemoryStorage()
    monkeypatch.setattr("common.blob_store.blob_store._storage", storage)
    return storage


class UserFactory:
    """Factory for creating User instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> User:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(10)))
        email = kwargs.pop("email", f"{username}@user.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> User:
        return self.create_user(**kwargs)


@pytest.fixture
def user_factory() -> UserFactory:
    return UserFactory()


@pytest.fixture
def organizer(user_factory: UserFactory) -> User:
    return user_factory(username="organizer", role=User.Role.ORGANIZER)


@pytest.fixture
def other_organizer(user_factory: UserFactory) -> User:
    return user_factory(username="other_organizer", role=User.Role.ORGANIZER)


@pytest.fixture
def buyer(user_factory: UserFactory) -> User:
    """A viewer: may buy tickets for any event."""
    return user_factory(username="buyer", role=User.Role.VIEWER, phone_number="+923001234567")


@pytest.fixture
def other_buyer(user_factory: UserFactory) -> User:
    return user_factory(username="other_buyer", role=User.Role.VIEWER)


@pytest.fixture
def event(organizer: User) -> Event:
    return Event.objects.create(
        title="Lahore Marathon",
        organizer=organizer,
        category="Running",
        location="Lahore",
        starts_at=timezone.now() + timedelta(days=14),
    )


@pytest.fixture
def other_event(other_organizer: User) -> Event:
    return Event.objects.create(title="Karachi Open", organizer=other_organizer, category="Tennis")


@pytest.fixture
def ticket_type(event: Event) -> TicketType:
    return TicketType.objects.create(event=event, name="General", price=Decimal("1500.00"), total_quantity=10)


@pytest.fixture
def payment_method(event: Event) -> PaymentMethod:
    return PaymentMethod.objects.create(
        event=event,
        kind=PaymentMethod.Kind.BANK_TRANSFER,
        name="HBL transfer",
        account_title="Marathon Org",
        account_number="0123456789",
        bank_name="HBL",
    )


def auth_client_for(user: User) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def organizer_client(organizer: User) -> Client:
    """API client for the event's organizer."""
    return auth_client_for(organizer)


@pytest.fixture
def other_organizer_client(other_organizer: User) -> Client:
    return auth_client_for(other_organizer)


@pytest.fixture
def buyer_client(buyer: User) -> Client:
    """API client for a buyer."""
    return auth_client_for(buyer)


@pytest.fixture
def other_buyer_client(other_buyer: User) -> Client:
    return auth_client_for(other_buyer)
