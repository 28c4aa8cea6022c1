import typing as t

import structlog
from django.http import HttpRequest
from ninja_jwt.authentication import JWTAuth


class ContextJWTAuth(JWTAuth):
    """JWT authentication that binds the resolved identity to the log context.

    Only the identity resolved from the token is trusted downstream; request bodies
    never carry user ids or roles.

    Usage:
        @api_controller("/orders", auth=ContextJWTAuth())
        class OrderController(UserAwareController): ...
    """

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and bind ``user_id``/``user_role`` to structlog.

        Raises:
            AuthenticationFailed: If authentication fails
            InvalidToken: If the token is invalid
        """
        user = super().authenticate(request, token)
        if user:
            structlog.contextvars.bind_contextvars(user_id=str(user.id), user_role=getattr(user, "role", None))
        return user
