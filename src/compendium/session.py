"""
User session state for Compendium.
"""

from typing import Any

from compendium.models import User


class UserSession:
    """Authenticated user identity and auth status flags."""

    def __init__(self):
        self.user: User | None = None
        self.is_loading = True
        self.is_authenticated = False

    @property
    def email(self) -> str | None:
        return self.user.email if self.user else None

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user else None

    def set_user(self, user: User | dict[str, Any] | None) -> None:
        if isinstance(user, dict):
            user = User.model_validate(user)
        self.user = user
        self.is_authenticated = user is not None
        self.is_loading = False

    def clear_user(self) -> None:
        self.user = None
        self.is_authenticated = False
        self.is_loading = False
