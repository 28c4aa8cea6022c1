"""Settings for ticket signing and payment proof uploads."""

from decouple import config

from .base import SECRET_KEY

# Secret for the HMAC-SHA256 digest embedded in every ticket reference.
# Rotating it invalidates every ticket issued so far.
TICKET_SIGNING_KEY = config("TICKET_SIGNING_KEY", default=SECRET_KEY)

# Payment proofs are JPEG, PNG or WebP images; anything larger is refused before upload.
PAYMENT_PROOF_MAX_BYTES = config("PAYMENT_PROOF_MAX_BYTES", default=5 * 1024 * 1024, cast=int)

# Lifetime of the signed URL handed to organizers to look at a proof.
PROOF_URL_EXPIRES_IN = config("PROOF_URL_EXPIRES_IN", default=3600, cast=int)
