import typing as t

import pytest

from accounts.models import User
from events.models import Event
from ticketing.exceptions import IneligibleBuyerError
from ticketing.service.eligibility import assert_eligible, check_eligibility

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "role,category,eligible,reason",
    [
        (User.Role.VIEWER, "", True, None),
        (User.Role.VIEWER, "Cricket", True, None),
        (User.Role.ATHLETE, "Running", True, None),
        (User.Role.ATHLETE, " running ", True, None),
        (User.Role.ATHLETE, "", True, None),
        (User.Role.ATHLETE, "All", True, None),
        (User.Role.ATHLETE, "Cricket", False, IneligibleBuyerError.CATEGORY_MISMATCH),
        (User.Role.REPORTER, "Cricket", False, IneligibleBuyerError.CATEGORY_MISMATCH),
        (User.Role.REPORTER, "RUNNING", True, None),
        (User.Role.ORGANIZER, "", False, IneligibleBuyerError.ORGANIZER_ACCOUNT),
    ],
)
def test_eligibility_matrix(
    user_factory: t.Callable[..., User], event: Event, role: str, category: str, eligible: bool, reason: str | None
) -> None:
    user = user_factory(role=role, category=category)

    result = check_eligibility(user, event)

    assert result.eligible is eligible
    assert result.reason == reason


def test_own_event_takes_precedence(organizer: User, event: Event) -> None:
    result = check_eligibility(organizer, event)

    assert result.reason == IneligibleBuyerError.OWN_EVENT
    assert result.message == "You cannot purchase tickets for your own event."


def test_category_mismatch_message(user_factory: t.Callable[..., User], event: Event) -> None:
    athlete = user_factory(role=User.Role.ATHLETE, category="Cricket")

    with pytest.raises(IneligibleBuyerError) as exc_info:
        assert_eligible(athlete, event)

    assert exc_info.value.reason == IneligibleBuyerError.CATEGORY_MISMATCH
    assert exc_info.value.message == "You can only purchase tickets for Cricket events."
    assert exc_info.value.status_code == 403
