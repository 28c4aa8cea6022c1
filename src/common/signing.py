"""HMAC helpers: keyed digests and signed URLs for protected blobs.

Two things are signed in Gatepass:

- Payment proof images live under ``protected/`` in the blob store and are only
  reachable through an expiring signed URL. The reverse proxy asks
  ``/api/media/validate/*`` whether a URL is genuine before serving the file.
- Ticket references carry their own digest (see ``ticketing.service.references``).

URL Format:
    /media/protected/payment_proofs/<order>/<name>.png?exp=1704067200&sig=<hex>

Keys:
    Every use derives its own key from a secret with a domain prefix,
    ``sha256("<domain>:<secret>")``, so a digest produced for one purpose is
    never accepted for another.
"""

import hashlib
import hmac
import time
import typing as t
from functools import lru_cache
from urllib.parse import urlencode

from django.conf import settings

__all__ = [
    "PROTECTED_PATH_PREFIX",
    "DEFAULT_EXPIRES_IN",
    "SIGNATURE_LENGTH",
    "derive_key",
    "digest",
    "digests_match",
    "generate_signature",
    "verify_signature",
    "generate_signed_url",
    "is_protected_path",
    "parse_signed_url_params",
    "SignedURLParams",
]

# URL signatures are short-lived, so a truncated digest is enough for them.
SIGNATURE_LENGTH = 32

DEFAULT_EXPIRES_IN = 3600

_URL_KEY_DOMAIN = "gatepass:signed-url:v1"

# Must match the reverse proxy's forward_auth configuration.
PROTECTED_PATH_PREFIX = "protected/"


@lru_cache(maxsize=8)
def derive_key(domain: str, secret: str) -> bytes:
    """Derive a purpose-specific HMAC key from a secret.

    Args:
        domain: A namespace such as ``"gatepass:signed-url:v1"``.
        secret: The configured secret (``SECRET_KEY`` or a dedicated one).

    Returns:
        32 bytes suitable for HMAC-SHA256.
    """
    return hashlib.sha256(f"{domain}:{secret}".encode()).digest()


def digest(key: bytes, message: str) -> str:
    """Hex-encoded HMAC-SHA256 of ``message``."""
    return hmac.new(key, message.encode(), hashlib.sha256).hexdigest()


def digests_match(given: str, expected: str) -> bool:
    """Constant-time comparison that tolerates arbitrary (non-ASCII) input."""
    return hmac.compare_digest(given.encode("utf-8", "surrogatepass"), expected.encode())


def generate_signature(path: str, expires: int) -> str:
    """Generate the signature for a path and expiration timestamp.

    Args:
        path: The file path (without query string), e.g. "/media/protected/x.png"
        expires: Unix timestamp when the URL expires.

    Returns:
        Hex-encoded signature, truncated to SIGNATURE_LENGTH chars.
    """
    key = derive_key(_URL_KEY_DOMAIN, settings.SECRET_KEY)
    return digest(key, f"{path}:{expires}")[:SIGNATURE_LENGTH]


def verify_signature(path: str, exp: str, sig: str) -> bool:
    """Verify a signed URL.

    Returns:
        True if the signature matches and the URL hasn't expired.
    """
    try:
        expires = int(exp)
    except (ValueError, TypeError):
        return False

    if expires <= time.time():
        return False

    return digests_match(sig, generate_signature(path, expires))


def generate_signed_url(path: str, *, expires_in: int = DEFAULT_EXPIRES_IN) -> str:
    """Generate a signed URL for a protected blob.

    Example:
        >>> generate_signed_url("protected/payment_proofs/abc/proof.png")
        "/media/protected/payment_proofs/abc/proof.png?exp=1704067200&sig=..."
    """
    expires = int(time.time()) + expires_in

    media_url = settings.MEDIA_URL.rstrip("/")
    full_path = f"{media_url}/{path.lstrip('/')}"

    sig = generate_signature(full_path, expires)
    return f"{full_path}?{urlencode({'exp': expires, 'sig': sig})}"


def is_protected_path(file_path: str) -> bool:
    """Check if a blob key requires signed URL access."""
    if not file_path:
        return False
    return file_path.startswith(PROTECTED_PATH_PREFIX)


class SignedURLParams(t.NamedTuple):
    """Parsed signed URL parameters."""

    path: str
    exp: str
    sig: str


def parse_signed_url_params(full_path: str, exp: str | None, sig: str | None) -> SignedURLParams | None:
    """Bundle the signed URL parameters, or None if any is missing."""
    if not exp or not sig:
        return None
    return SignedURLParams(path=full_path, exp=exp, sig=sig)
