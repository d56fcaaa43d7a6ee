"""Per-user daily log store."""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Protocol

from slimlogic.domain.coach import DailyAnalysis
from slimlogic.domain.models import ZERO_MACROS, DailyLog, FoodEntry, MacroNutrients
from slimlogic.services.clock import Clock
from slimlogic.services.errors import NotAuthenticatedError

_logger = logging.getLogger(__name__)


class LogRepository(Protocol):
    """Persistence interface for a user's whole log collection."""

    def load(self, username: str) -> list[DailyLog]:
        """Return the stored collection, or an empty list."""

    def save(self, username: str, logs: list[DailyLog]) -> None:
        """Replace the stored collection for the user."""


@dataclass
class DailyLogStore:
    """In-memory log collection bound to one user and mirrored to storage.

    Every mutation rewrites the whole collection. Loading replaces whatever is
    in memory, so unsaved changes from a previous binding are discarded.
    """

    repository: LogRepository
    clock: Clock
    username: str | None = None
    logs: list[DailyLog] = field(default_factory=list)

    def load(self, username: str) -> list[DailyLog]:
        """Bind the store to a user and replace memory with their logs."""
        self.username = username
        self.logs = list(self.repository.load(username))
        _logger.info("Loaded %s daily logs for %s", len(self.logs), username)
        return self.logs

    def reset(self, username: str) -> None:
        """Bind the store to a user with an empty collection and persist it."""
        self.username = username
        self.logs = []
        self.save()

    def clear(self) -> None:
        """Unbind the store without touching persisted data."""
        self.username = None
        self.logs = []

    def save(self) -> None:
        """Persist the full collection for the bound user."""
        username = self._require_user()
        self.repository.save(username, list(self.logs))
        _logger.debug("Saved %s daily logs for %s", len(self.logs), username)

    def today_log(self) -> DailyLog:
        """Return today's log, or an unsaved empty one."""
        self._require_user()
        today = self.clock.today()
        return self._find(today) or DailyLog(date=today)

    def get(self, day: date) -> DailyLog | None:
        """Return the log for a date, if one exists."""
        return self._find(day)

    def add_entry(self, entry: FoodEntry) -> DailyLog:
        """Append an entry to today's log, creating the log if needed."""
        self._require_user()
        today = self.clock.today()
        current = self._find(today) or DailyLog(date=today)
        updated = replace(current, entries=(*current.entries, entry))
        self._put(updated)
        self.save()
        return updated

    def remove_entry(self, entry_id: str) -> bool:
        """Remove an entry by id from every log.

        Returns False when no log held the id; nothing is written then.
        """
        self._require_user()
        removed = False
        updated_logs: list[DailyLog] = []
        for log in self.logs:
            kept = tuple(entry for entry in log.entries if entry.id != entry_id)
            if len(kept) != len(log.entries):
                removed = True
                log = replace(log, entries=kept)
            updated_logs.append(log)
        if not removed:
            return False
        self.logs = updated_logs
        self.save()
        return True

    def set_weight(self, weight: float) -> DailyLog:
        """Record today's weight, overwriting any earlier check-in today."""
        self._require_user()
        today = self.clock.today()
        current = self._find(today) or DailyLog(date=today)
        updated = replace(current, weight=weight)
        self._put(updated)
        self.save()
        return updated

    def previous_weight(self) -> float | None:
        """Return the most recent weight recorded before today."""
        today = self.clock.today()
        for log in self.sorted_logs():
            if log.date != today and log.weight is not None:
                return log.weight
        return None

    def cache_analysis(self, day: date, analysis: DailyAnalysis) -> DailyLog | None:
        """Attach a coach analysis to an existing log and persist it."""
        current = self._find(day)
        if current is None:
            return None
        updated = replace(current, analysis=analysis)
        self._put(updated)
        self.save()
        return updated

    def sorted_logs(self, descending: bool = True) -> list[DailyLog]:
        """Return logs ordered by date."""
        return sorted(self.logs, key=lambda log: log.date, reverse=descending)

    def calories_consumed(self) -> float:
        """Return today's calorie total."""
        return self.today_log().total_calories

    def _find(self, day: date) -> DailyLog | None:
        for log in self.logs:
            if log.date == day:
                return log
        return None

    def _put(self, log: DailyLog) -> None:
        for index, existing in enumerate(self.logs):
            if existing.date == log.date:
                self.logs[index] = log
                return
        self.logs.append(log)

    def _require_user(self) -> str:
        if self.username is None:
            raise NotAuthenticatedError()
        return self.username


def totals(log: DailyLog) -> MacroNutrients:
    """Sum all macros for a log."""
    total = ZERO_MACROS
    for entry in log.entries:
        total = total + entry.macros
    return total
