"""Models for structured results returned by the AI coach."""

from typing import Literal

from pydantic import BaseModel, Field


class MacroEstimate(BaseModel):
    """Macro estimate for a described or photographed food."""

    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fats: float = Field(ge=0.0)
    saturated_fats: float = Field(ge=0.0)
    sugars: float = Field(ge=0.0)


class FoodAssessment(BaseModel):
    """Either a committed macro estimate or questions to ask first."""

    is_specific: bool
    clarifying_questions: list[str] | None = None
    food_name: str | None = None
    estimated_macros: MacroEstimate | None = None

    @property
    def is_ready(self) -> bool:
        return (
            self.is_specific
            and bool(self.food_name)
            and self.estimated_macros is not None
        )


class ChoiceEvaluation(BaseModel):
    """Yes/No answer to "should I eat this?"."""

    recommendation: Literal["Yes", "No"]
    reason: str


class HealthyAlternative(BaseModel):
    """A healthier swap for a photographed food."""

    original_food: str
    healthier_alternative: str
    why_it_is_better: str
    calorie_difference: float


class DailyAnalysis(BaseModel):
    """Coach review of a single day."""

    verdict: Literal["Good Day", "Needs Improvement", "Off Track"]
    summary: str
    dos: list[str]
    donts: list[str]


class ChatTurn(BaseModel):
    """One message in the advisor conversation."""

    role: Literal["user", "assistant"]
    text: str
