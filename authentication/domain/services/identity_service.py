"""
Identity lookup used by the auction and payment services to resolve a user
id into a display name and contact address.
"""

from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import ValidationError

from authentication.domain.models import CustomUser


@dataclass(frozen=True)
class Identity:
    user_id: str
    name: str
    email: str


class IdentityLookupService:
    def get(self, user_id) -> Optional[Identity]:
        """Return the identity for ``user_id`` or None when the user does not exist."""
        try:
            user = CustomUser.objects.only("id", "email", "username", "first_name", "last_name").get(pk=user_id)
        except (CustomUser.DoesNotExist, ValidationError, ValueError):
            return None
        return self.from_user(user)

    @staticmethod
    def from_user(user) -> Identity:
        return Identity(user_id=str(user.pk), name=user.display_name, email=user.email)
