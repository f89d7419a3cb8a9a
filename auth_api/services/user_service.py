"""Profile reads and updates for signed-in users."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from auth_api.core.errors import NotFoundError, ValidationError
from auth_api.core.security import MIN_PASSWORD_LENGTH
from auth_api.repositories.user_repository import UserRepository, to_public


@dataclass
class UserService:
    repository: UserRepository

    def get_profile(self, user_id: str) -> dict[str, Any]:
        user = self.repository.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return to_public(user)

    def update_profile(self, user_id: str, name: Optional[str], password: Optional[str] = None) -> dict[str, Any]:
        user = self.repository.get_user(user_id)
        if not user:
            raise ValidationError("User not found")
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        if password and len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password should be min {MIN_PASSWORD_LENGTH} characters long")

        if password:
            self.repository.set_password(user.id, password)
        updated = self.repository.update_user(user.id, name=name)
        if not updated:
            raise ValidationError("User not found")
        return to_public(updated)
