"""Who may buy tickets for which event.

Rules, checked against the stored user and event rather than anything the client sends:

- organizer accounts never buy tickets;
- nobody buys tickets for an event they organize;
- athletes and reporters with a category only buy for events of that category;
- viewers may buy for any event.
"""

from dataclasses import dataclass

from accounts.models import User
from events.models import Event

from ..exceptions import IneligibleBuyerError


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: str | None = None
    message: str | None = None


def check_eligibility(user: User, event: Event) -> Eligibility:
    """Evaluate the purchase rules for ``user`` and ``event`` without raising."""
    if event.organizer_id == user.id:
        return Eligibility(
            False, IneligibleBuyerError.OWN_EVENT, "You cannot purchase tickets for your own event."
        )
    if user.is_organizer:
        return Eligibility(False, IneligibleBuyerError.ORGANIZER_ACCOUNT, "Organizers cannot purchase tickets.")
    category = user.restricted_category
    if category and category.casefold() != (event.category or "").strip().casefold():
        return Eligibility(
            False,
            IneligibleBuyerError.CATEGORY_MISMATCH,
            f"You can only purchase tickets for {category} events.",
        )
    return Eligibility(True)


def assert_eligible(user: User, event: Event) -> None:
    """Raise if ``user`` may not buy tickets for ``event``.

    Raises:
        IneligibleBuyerError: With the reason code of the first rule that fails.
    """
    eligibility = check_eligibility(user, event)
    if not eligibility.eligible:
        raise IneligibleBuyerError(eligibility.reason or "", eligibility.message or "")
