"""Errors raised by the ticketing services.

Every error carries a stable ``code`` and the HTTP status it maps to; the API
turns them into a typed JSON failure (see ``api.exception_handlers``).
"""

import typing as t


class TicketingError(Exception):
    """Base class for expected, recoverable ticketing failures."""

    code: t.ClassVar[str] = "error"
    status_code: t.ClassVar[int] = 400
    retryable: t.ClassVar[bool] = False
    default_message: t.ClassVar[str] = "The request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TicketingError):
    """Bad input shape or range (quantity <= 0, missing rejection reason...)."""

    code = "validation"
    status_code = 400
    default_message = "Invalid request."


class AuthorizationError(TicketingError):
    """The actor is not allowed to perform this transition."""

    code = "forbidden"
    status_code = 403
    default_message = "You are not allowed to do this."


class IneligibleBuyerError(AuthorizationError):
    """The buyer may not purchase tickets for this event."""

    code = "ineligible"

    OWN_EVENT: t.ClassVar[str] = "own_event"
    ORGANIZER_ACCOUNT: t.ClassVar[str] = "organizer_account"
    CATEGORY_MISMATCH: t.ClassVar[str] = "category_mismatch"

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class OversoldError(TicketingError):
    """Not enough inventory left for the requested quantity."""

    code = "oversold"
    status_code = 409
    default_message = "Not enough tickets available."


class StateConflictError(TicketingError):
    """A transition was attempted from a status that does not allow it."""

    code = "state_conflict"
    status_code = 409
    default_message = "This action is not allowed in the current state."


class NotFoundError(TicketingError):
    """Unknown order, ticket, ticket type, payment method or event."""

    code = "not_found"
    status_code = 404
    default_message = "Not found."


class SignatureError(TicketingError):
    """A ticket reference is malformed or its digest does not match."""

    code = "invalid_signature"
    status_code = 400
    default_message = "Invalid ticket reference."


class StorageError(TicketingError):
    """The blob store failed; the request can be retried safely."""

    code = "storage"
    status_code = 503
    retryable = True
    default_message = "Could not store the file, please retry."


class ImmutableRecordError(TicketingError):
    """An append-only or never-deleted record was asked to change or disappear."""

    code = "immutable"
    status_code = 409
    default_message = "This record cannot be changed or deleted."
