"""Supabase repository for per-user daily log snapshots."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from slimlogic.domain.codec import log_from_dict, log_to_dict
from slimlogic.domain.models import DailyLog
from slimlogic.services.logs import LogRepository


@dataclass
class SupabaseLogRepository(LogRepository):
    """Stores each user's whole log collection as one JSON row."""

    client: Client

    def load(self, username: str) -> list[DailyLog]:
        """Return the stored collection for a user."""
        response = (
            self.client.table("daily_log_snapshots")
            .select("username, logs")
            .eq("username", username)
            .limit(1)
            .execute()
        )
        if not response.data:
            return []
        logs = response.data[0].get("logs") or []
        return [log_from_dict(row) for row in logs if isinstance(row, dict)]

    def save(self, username: str, logs: list[DailyLog]) -> None:
        """Upsert the full collection for a user."""
        self.client.table("daily_log_snapshots").upsert(
            {
                "username": username,
                "logs": [log_to_dict(log) for log in logs],
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="username",
        ).execute()
