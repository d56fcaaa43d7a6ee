"""Supabase-backed credential repository."""

from dataclasses import asdict, dataclass

from supabase import Client

from slimlogic.domain.models import UserProfile, UserRecord
from slimlogic.services.accounts import CredentialRepository


@dataclass
class SupabaseCredentialRepository(CredentialRepository):
    """Supabase implementation for credentials and profiles."""

    client: Client

    def get_user(self, username: str) -> UserRecord | None:
        """Return the user row for a username, if present."""
        response = (
            self.client.table("app_users")
            .select("username, password_hash, profile")
            .eq("username", username)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserRecord(
            username=row["username"],
            password_hash=row["password_hash"],
            profile=_parse_profile(row.get("profile") or {}),
        )

    def create_user(self, record: UserRecord) -> None:
        """Insert a new user row."""
        response = (
            self.client.table("app_users")
            .insert(
                {
                    "username": record.username,
                    "password_hash": record.password_hash,
                    "profile": _serialize_profile(record.profile),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")

    def update_profile(self, username: str, profile: UserProfile) -> None:
        """Replace the stored profile JSON for a user."""
        self.client.table("app_users").update(
            {"profile": _serialize_profile(profile)}
        ).eq("username", username).execute()


def _serialize_profile(profile: UserProfile) -> dict[str, object]:
    payload = asdict(profile)
    return {
        "username": payload["username"],
        "age": payload["age"],
        "gender": payload["gender"],
        "heightCm": payload["height_cm"],
        "currentWeight": payload["current_weight"],
        "targetWeight": payload["target_weight"],
        "dailyCalorieLimit": payload["daily_calorie_limit"],
        "activityLevel": payload["activity_level"],
    }


def _parse_profile(row: dict[str, object]) -> UserProfile:
    gender = "male" if row.get("gender") == "male" else "female"
    return UserProfile(
        username=str(row.get("username", "")),
        age=float(row.get("age", 0)),
        gender=gender,
        height_cm=float(row.get("heightCm", 0.0)),
        current_weight=float(row.get("currentWeight", 0.0)),
        target_weight=float(row.get("targetWeight", 0.0)),
        daily_calorie_limit=int(row.get("dailyCalorieLimit", 0)),
    )
