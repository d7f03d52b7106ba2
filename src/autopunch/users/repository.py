from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Preferences, User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        username: str,
        display_name: str,
        password_hash: str,
        portal_username: str,
        portal_secret: str,
    ) -> int:
        raise NotImplementedError

    def update_preferences(self, user_id: int, preferences: Preferences) -> bool:
        raise NotImplementedError

    def update_portal_identity(
        self,
        user_id: int,
        *,
        portal_username: Optional[str] = None,
        portal_secret: Optional[str] = None,
    ) -> bool:
        """Change only the fields that are not None."""

        raise NotImplementedError
