"""Supabase-backed user repository."""

from dataclasses import dataclass

from supabase import Client

from macro_tracker.domain.models import Gender, MacroTargets, UserProfile, UserRecord
from macro_tracker.services.users import UserRepository

_USER_COLUMNS = "id, name, age, weight_kg, height_cm, gender, target_macros"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def create_user(self, profile: UserProfile) -> UserRecord:
        """Create a new user row and return it."""
        payload = _profile_payload(profile)
        payload["target_macros"] = {}
        response = self.client.table("users").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _parse_user(response.data[0])

    def get_user(self, user_id: int) -> UserRecord | None:
        response = (
            self.client.table("users")
            .select(_USER_COLUMNS)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_user(response.data[0])

    def list_users(self) -> list[UserRecord]:
        response = (
            self.client.table("users")
            .select(_USER_COLUMNS)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_user(row) for row in response.data or []]

    def update_profile(self, user_id: int, profile: UserProfile) -> bool:
        response = (
            self.client.table("users")
            .update(_profile_payload(profile))
            .eq("id", user_id)
            .execute()
        )
        return bool(response.data)

    def update_targets(self, user_id: int, targets: MacroTargets) -> bool:
        response = (
            self.client.table("users")
            .update({"target_macros": targets.to_dict()})
            .eq("id", user_id)
            .execute()
        )
        return bool(response.data)


def _profile_payload(profile: UserProfile) -> dict[str, object]:
    return {
        "name": profile.name,
        "age": profile.age,
        "weight_kg": profile.weight_kg,
        "height_cm": profile.height_cm,
        "gender": str(profile.gender) if profile.gender else None,
    }


def _parse_user(row: dict[str, object]) -> UserRecord:
    gender = row.get("gender")
    targets = row.get("target_macros")
    return UserRecord(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        age=int(row.get("age") or 0),
        weight_kg=float(row.get("weight_kg") or 0.0),
        height_cm=float(row.get("height_cm") or 0.0),
        gender=Gender.parse(gender) if isinstance(gender, str) and gender else None,
        targets=MacroTargets.from_dict(targets if isinstance(targets, dict) else None),
    )
