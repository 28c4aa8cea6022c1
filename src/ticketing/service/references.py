"""Signed ticket references.

A reference is the string encoded in a ticket's QR code::

    gp1.<order_id>.<event_id>.<buyer_id>.<sequence>.<issued_at_ms>.<hmac>

``<hmac>`` is the full hex HMAC-SHA256 of everything before it, keyed with a key
derived from ``settings.TICKET_SIGNING_KEY``. Verification needs nothing but the
key, so a gate can reject forged or altered references before touching the
database.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from common.signing import derive_key, digest, digests_match

from ..exceptions import SignatureError

__all__ = ["REFERENCE_VERSION", "TicketClaims", "issued_at_ms", "sign", "verify"]

REFERENCE_VERSION = "gp1"
_KEY_DOMAIN = "gatepass:ticket-reference:v1"
_SEPARATOR = "."
_PARTS = 7


@dataclass(frozen=True)
class TicketClaims:
    """What a valid reference asserts about its ticket."""

    order_id: UUID
    event_id: UUID
    buyer_id: UUID
    sequence: int
    issued_at_ms: int

    @property
    def issued_at(self) -> datetime:
        return datetime.fromtimestamp(self.issued_at_ms / 1000, tz=timezone.get_current_timezone())


def _key() -> bytes:
    return derive_key(_KEY_DOMAIN, settings.TICKET_SIGNING_KEY)


def sign(order_id: UUID, event_id: UUID, buyer_id: UUID, sequence: int, issued_at_ms: int) -> str:
    """Build the signed reference for one ticket unit."""
    payload = _SEPARATOR.join(
        [REFERENCE_VERSION, str(order_id), str(event_id), str(buyer_id), str(sequence), str(issued_at_ms)]
    )
    return f"{payload}{_SEPARATOR}{digest(_key(), payload)}"


def verify(reference: str) -> TicketClaims:
    """Check a reference's digest and decode its claims.

    Raises:
        SignatureError: If the reference is malformed or was not produced by ``sign``
            with the current key.
    """
    if not isinstance(reference, str):
        raise SignatureError()
    payload, _, signature = reference.rpartition(_SEPARATOR)
    if not payload or not digests_match(signature, digest(_key(), payload)):
        raise SignatureError()

    parts = payload.split(_SEPARATOR)
    if len(parts) != _PARTS - 1 or parts[0] != REFERENCE_VERSION:
        raise SignatureError()
    try:
        return TicketClaims(
            order_id=UUID(parts[1]),
            event_id=UUID(parts[2]),
            buyer_id=UUID(parts[3]),
            sequence=int(parts[4]),
            issued_at_ms=int(parts[5]),
        )
    except ValueError:
        raise SignatureError() from None


def issued_at_ms(now: datetime | None = None) -> int:
    """Milliseconds since the epoch, as embedded in references and ticket codes."""
    return int((now or timezone.now()).timestamp() * 1000)
