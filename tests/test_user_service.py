"""Tests for user service."""

from dataclasses import dataclass

import pytest

from macro_tracker.domain.models import Gender, UserProfile
from macro_tracker.services.users import UserService
from tests.conftest import InMemoryUserRepository


def _service_with_user() -> UserService:
    service = UserService(InMemoryUserRepository())
    service.create_user(
        UserProfile(
            name="Ada", age=30, weight_kg=60, height_cm=165, gender=Gender.FEMALE
        )
    )
    return service


def test_create_and_get_user() -> None:
    service = _service_with_user()

    user = service.get_user(1)

    assert user is not None
    assert user.name == "Ada"
    assert user.targets.is_set is False
    assert [u.id for u in service.list_users()] == [1]


def test_update_user_changes_only_filled_fields() -> None:
    service = _service_with_user()

    updated = service.update_user(1, name="", age=0, weight_kg=58.5, gender="homme")

    assert updated is not None
    assert updated.name == "Ada"
    assert updated.age == 30
    assert updated.weight_kg == 58.5
    assert updated.height_cm == 165
    assert updated.gender == Gender.MALE
    assert service.get_user(1) == updated


def test_update_user_rejects_unknown_gender() -> None:
    service = _service_with_user()

    with pytest.raises(ValueError):
        service.update_user(1, gender="robot")


def test_update_missing_user_returns_none() -> None:
    service = _service_with_user()

    assert service.update_user(42, name="Nobody") is None


@dataclass
class VanishingUserRepository(InMemoryUserRepository):
    """Finds the user but loses the row before the update lands."""

    def update_profile(self, user_id: int, profile: UserProfile) -> bool:
        self.users.pop(user_id, None)
        return False


def test_update_user_that_vanished_returns_none() -> None:
    repository = VanishingUserRepository()
    service = UserService(repository)
    service.create_user(UserProfile(name="Ada"))

    assert service.update_user(1, name="Grace") is None
