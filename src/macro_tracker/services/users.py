"""User-related business logic."""

from dataclasses import dataclass, replace
from typing import Protocol

from macro_tracker.domain.models import (
    Gender,
    MacroTargets,
    UserProfile,
    UserRecord,
)


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def create_user(self, profile: UserProfile) -> UserRecord:
        """Create and return a new user record with no targets."""

    def get_user(self, user_id: int) -> UserRecord | None:
        """Return the user with this id, if present."""

    def list_users(self) -> list[UserRecord]:
        """Return all users ordered by id."""

    def update_profile(self, user_id: int, profile: UserProfile) -> bool:
        """Overwrite profile fields; returns False when no row matched."""

    def update_targets(self, user_id: int, targets: MacroTargets) -> bool:
        """Overwrite the stored targets; returns False when no row matched."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository

    def create_user(self, profile: UserProfile) -> UserRecord:
        return self.repository.create_user(profile)

    def get_user(self, user_id: int) -> UserRecord | None:
        return self.repository.get_user(user_id)

    def list_users(self) -> list[UserRecord]:
        return self.repository.list_users()

    def update_user(  # noqa: PLR0913
        self,
        user_id: int,
        *,
        name: str | None = None,
        age: int | None = None,
        weight_kg: float | None = None,
        height_cm: float | None = None,
        gender: str | None = None,
    ) -> UserRecord | None:
        """Apply a partial profile update.

        Empty strings and zero values keep the current value, so a form can
        send every field and only the filled-in ones change. Returns None when
        the user is missing or the update matched no row.
        """
        user = self.repository.get_user(user_id)
        if user is None:
            return None
        updated = user
        if name:
            updated = replace(updated, name=name)
        if age:
            updated = replace(updated, age=age)
        if weight_kg:
            updated = replace(updated, weight_kg=weight_kg)
        if height_cm:
            updated = replace(updated, height_cm=height_cm)
        if gender:
            updated = replace(updated, gender=Gender.parse(gender))
        matched = self.repository.update_profile(
            user_id,
            UserProfile(
                name=updated.name,
                age=updated.age,
                weight_kg=updated.weight_kg,
                height_cm=updated.height_cm,
                gender=updated.gender,
            ),
        )
        if not matched:
            return None
        return updated
