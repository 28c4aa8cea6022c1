"""Media validation endpoint for the reverse proxy's forward_auth.

Flow:
    1. An organizer opens /media/protected/payment_proofs/<order>/<name>.png?exp=...&sig=...
    2. The proxy calls /api/media/validate/protected/payment_proofs/...?exp=...&sig=...
    3. This endpoint verifies the signature and expiry
    4. Returns 200 (proxy serves the file) or 401 (access denied)

Note:
    This endpoint is NOT authenticated - it validates the HMAC signature instead.
"""

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from ninja_extra import api_controller, route

from common.signing import parse_signed_url_params, verify_signature
from common.throttling import MediaValidationThrottle


@api_controller("/media", tags=["Media"])
class MediaValidationController:
    """Controller for validating signed media URLs."""

    @route.get(
        "/validate/{path:path}",
        url_name="validate_media",
        response={200: None, 401: None},
        throttle=MediaValidationThrottle(),
    )
    def validate_media(self, request: HttpRequest, path: str) -> HttpResponse:
        """Validate a signed URL for protected media access.

        The signed path is reconstructed as ``{MEDIA_URL}{path}`` to match what
        ``generate_signed_url`` signed.
        """
        exp = request.GET.get("exp")
        sig = request.GET.get("sig")

        full_path = f"{settings.MEDIA_URL.rstrip('/')}/{path}"

        params = parse_signed_url_params(full_path, exp, sig)
        if params is None:
            return HttpResponse(status=401)

        if not verify_signature(params.path, params.exp, params.sig):
            return HttpResponse(status=401)

        return HttpResponse(status=200)
