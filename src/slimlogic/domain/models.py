"""Domain models for the calorie tracker."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from slimlogic.domain.coach import DailyAnalysis

Gender = Literal["male", "female"]


@dataclass(frozen=True)
class MacroNutrients:
    """Nutritional quantities attached to a food entry."""

    calories: float
    protein: float
    carbs: float
    fats: float
    saturated_fats: float
    sugars: float

    def __add__(self, other: "MacroNutrients") -> "MacroNutrients":
        return MacroNutrients(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fats=self.fats + other.fats,
            saturated_fats=self.saturated_fats + other.saturated_fats,
            sugars=self.sugars + other.sugars,
        )


ZERO_MACROS = MacroNutrients(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class FoodEntry:
    """A single confirmed food item."""

    id: str
    name: str
    timestamp: datetime
    macros: MacroNutrients
    verdict: str | None = None
    image_uri: str | None = None


@dataclass(frozen=True)
class DailyLog:
    """Entries and check-in data recorded for one calendar day."""

    date: date
    entries: tuple[FoodEntry, ...] = field(default_factory=tuple)
    weight: float | None = None
    notes: str | None = None
    analysis: DailyAnalysis | None = None

    @property
    def total_calories(self) -> float:
        return sum(entry.macros.calories for entry in self.entries)


@dataclass(frozen=True)
class UserProfile:
    """Profile created at signup."""

    username: str
    age: float
    gender: Gender
    height_cm: float
    current_weight: float
    target_weight: float
    daily_calorie_limit: int
    activity_level: Literal["sedentary"] = "sedentary"


@dataclass(frozen=True)
class UserRecord:
    """Stored credential row with its embedded profile copy."""

    username: str
    password_hash: str
    profile: UserProfile


@dataclass(frozen=True)
class Session:
    """The currently authenticated user."""

    profile: UserProfile

    @property
    def username(self) -> str:
        return self.profile.username
