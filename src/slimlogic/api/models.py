"""Pydantic models for HTTP request payloads."""

from pydantic import BaseModel, Field

from slimlogic.domain.coach import MacroEstimate
from slimlogic.services.tracker import AppView


class SignUpRequest(BaseModel):
    """Sign-up form; numeric fields are validated by the account service."""

    username: str
    password: str
    age: float | str | None = None
    gender: str = "female"
    height_cm: float | str | None = None
    weight_lbs: float | str | None = None


class LogInRequest(BaseModel):
    """Log-in form."""

    username: str
    password: str


class ViewRequest(BaseModel):
    """Requested active view."""

    view: AppView


class AssessFoodRequest(BaseModel):
    """Food description or photo, plus answers to earlier questions."""

    description: str = ""
    image_base64: str | None = None
    previous_questions: list[str] | None = None
    answers: list[str] | None = None


class ConfirmFoodRequest(BaseModel):
    """A food the user confirmed for logging."""

    name: str
    macros: MacroEstimate
    image_base64: str | None = None


class WeightRequest(BaseModel):
    """Daily weight check-in in pounds."""

    weight: float = Field(gt=0)


class ChatRequest(BaseModel):
    """Advisor chat message."""

    message: str


class EvaluateChoiceRequest(BaseModel):
    """Food to check against the remaining budget."""

    description: str = ""
    image_base64: str | None = None


class AlternativeRequest(BaseModel):
    """Photo of a food to swap."""

    image_base64: str


class EditImageRequest(BaseModel):
    """Meal photo and the requested change."""

    image_base64: str
    prompt: str
