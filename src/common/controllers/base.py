import typing as t

from ninja_extra import ControllerBase

from accounts.models import User


class UserAwareController(ControllerBase):
    def user(self) -> User:
        """Get the authenticated user for this request."""
        return t.cast(User, self.context.request.user)  # type: ignore[union-attr]
