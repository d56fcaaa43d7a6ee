"""Clock abstraction for deriving the local calendar day."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current instant and local calendar day."""

    def now(self) -> datetime:
        """Return the current timezone-aware instant."""

    def today(self) -> date:
        """Return the local calendar day."""


@dataclass
class SystemClock(Clock):
    """Wall clock in a fixed timezone."""

    tz: ZoneInfo

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)

    def today(self) -> date:
        return self.now().date()
