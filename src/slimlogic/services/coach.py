"""AI coach service: prompts, schemas and result validation."""

import base64
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from slimlogic.domain.codec import log_to_dict, macros_to_dict
from slimlogic.domain.coach import (
    ChatTurn,
    ChoiceEvaluation,
    DailyAnalysis,
    FoodAssessment,
    HealthyAlternative,
)
from slimlogic.domain.models import DailyLog, MacroNutrients
from slimlogic.services.errors import CollaboratorUnavailableError

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_MACROS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "calories": {"type": "number", "minimum": 0},
        "protein": {"type": "number", "minimum": 0},
        "carbs": {"type": "number", "minimum": 0},
        "fats": {"type": "number", "minimum": 0},
        "saturated_fats": {"type": "number", "minimum": 0},
        "sugars": {"type": "number", "minimum": 0},
    },
    "required": ["calories", "protein", "carbs", "fats", "saturated_fats", "sugars"],
    "additionalProperties": False,
}

ASSESSMENT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "is_specific": {"type": "boolean"},
        "clarifying_questions": {
            "anyOf": [{"type": "array", "items": {"type": "string"}}, {"type": "null"}]
        },
        "food_name": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "estimated_macros": {"anyOf": [_MACROS_SCHEMA, {"type": "null"}]},
    },
    "required": [
        "is_specific",
        "clarifying_questions",
        "food_name",
        "estimated_macros",
    ],
    "additionalProperties": False,
}

CHOICE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "recommendation": {"type": "string", "enum": ["Yes", "No"]},
        "reason": {"type": "string"},
    },
    "required": ["recommendation", "reason"],
    "additionalProperties": False,
}

ALTERNATIVE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "original_food": {"type": "string"},
        "healthier_alternative": {"type": "string"},
        "why_it_is_better": {"type": "string"},
        "calorie_difference": {"type": "number"},
    },
    "required": [
        "original_food",
        "healthier_alternative",
        "why_it_is_better",
        "calorie_difference",
    ],
    "additionalProperties": False,
}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "verdict": {
            "type": "string",
            "enum": ["Good Day", "Needs Improvement", "Off Track"],
        },
        "summary": {"type": "string"},
        "dos": {"type": "array", "items": {"type": "string"}},
        "donts": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["verdict", "summary", "dos", "donts"],
    "additionalProperties": False,
}

_ASSESSMENT_INSTRUCTIONS = (
    "If the user input is vague (e.g. 'sandwich', 'rice', 'chicken'), set "
    "is_specific to false and ask 2-3 short questions about cooking method, "
    "portion size (grams/cups) or ingredients. Do not guess averages. Only "
    "return macros if you are confident."
)
_VERDICT_INSTRUCTIONS = (
    "You are a weight loss coach. Be direct. Mention if high in saturated fat "
    "or sugar. Max 15 words."
)
_CHAT_INSTRUCTIONS = (
    "You are SlimLogic AI, a supportive but strict weight loss coach. "
    "You have access to the user's data: {context}. "
    "Use this data to give specific advice. If they ask what to eat, look at "
    "their remaining calories and macros. Keep answers under 3 sentences "
    "unless asked for a detailed plan."
)
_REPORT_INSTRUCTIONS = (
    "You are a data analyst for a weight loss app. Be encouraging but factual."
)


class CoachClient(Protocol):
    """Interface for the generative model backing the coach."""

    async def structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str | None,
        prompt: str,
        image_data_urls: list[str],
        schema_name: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return a JSON object matching the schema."""

    async def reply(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str | None,
        prompt: str,
        history: list[ChatTurn],
    ) -> str:
        """Return a free-text answer."""

    async def generate_image(self, *, model: str, prompt: str) -> bytes:
        """Return image bytes generated from a prompt."""

    async def edit_image(self, *, model: str, image: bytes, prompt: str) -> bytes:
        """Return an edited copy of the image."""


@dataclass
class CoachService:
    """One method per coach use case, each returning validated results.

    Any failure of the underlying client, including malformed output, is
    raised as ``CollaboratorUnavailableError``.
    """

    client: CoachClient
    model: str
    fast_model: str
    report_model: str
    image_model: str
    reasoning_effort: str | None
    store: bool

    async def assess_food(
        self,
        description: str,
        image: bytes | None = None,
        previous_questions: list[str] | None = None,
        answers: list[str] | None = None,
    ) -> FoodAssessment:
        """Estimate macros for a food, or ask clarifying questions."""
        prompt = (
            "You are a strict, precision-focused nutritionist AI. Your goal is "
            f'EXACT calorie tracking.\nUser Input: "{description}"'
        )
        if previous_questions and answers is not None:
            prompt += (
                f"\nContext - Previous Questions: {json.dumps(previous_questions)}"
                f"\nUser Answers: {json.dumps(answers)}"
                "\nCombine this information to determine specific macros."
            )
        raw = await self._guard(
            "assess_food",
            lambda: self.client.structured(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=_ASSESSMENT_INSTRUCTIONS,
                prompt=prompt,
                image_data_urls=[to_data_url(image)] if image else [],
                schema_name="food_assessment",
                schema=ASSESSMENT_SCHEMA,
            ),
        )
        return self._validate("assess_food", FoodAssessment.model_validate, raw)

    async def food_verdict(self, name: str, macros: MacroNutrients) -> str:
        """Return a one-sentence weight-loss verdict for a food."""
        return await self._text(
            "food_verdict",
            model=self.fast_model,
            instructions=_VERDICT_INSTRUCTIONS,
            prompt=(
                f"Analyze this food for weight loss: {name}. "
                f"Macros: {json.dumps(macros_to_dict(macros))}. "
                "Give a single sentence verdict."
            ),
        )

    async def chat(self, message: str, history: list[ChatTurn], context: str) -> str:
        """Return the coach's reply to a chat message."""
        return await self._text(
            "chat",
            model=self.model,
            instructions=_CHAT_INSTRUCTIONS.format(context=context),
            prompt=message,
            history=history,
        )

    async def evaluate_choice(
        self, description: str, image: bytes | None, context: str
    ) -> ChoiceEvaluation:
        """Answer whether the user should eat a food."""
        prompt = (
            f"Based on the user's remaining calories and goals ({context}), "
            "should they eat this? Be strict. If it fits, say Yes. If it blows "
            "the limit or is junk, say No. Provide a short, punchy reason."
        )
        if description:
            prompt += f"\nFood: {description}"
        raw = await self._guard(
            "evaluate_choice",
            lambda: self.client.structured(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=None,
                prompt=prompt,
                image_data_urls=[to_data_url(image)] if image else [],
                schema_name="choice_evaluation",
                schema=CHOICE_SCHEMA,
            ),
        )
        return self._validate("evaluate_choice", ChoiceEvaluation.model_validate, raw)

    async def suggest_alternative(
        self, image: bytes, context: str
    ) -> HealthyAlternative:
        """Suggest a healthier swap for the photographed food."""
        raw = await self._guard(
            "suggest_alternative",
            lambda: self.client.structured(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=None,
                prompt=(
                    "Identify this food. Suggest a healthier alternative that "
                    "satisfies a similar craving but is better for weight loss. "
                    f"Context of user habits: {context}"
                ),
                image_data_urls=[to_data_url(image)],
                schema_name="healthy_alternative",
                schema=ALTERNATIVE_SCHEMA,
            ),
        )
        return self._validate(
            "suggest_alternative", HealthyAlternative.model_validate, raw
        )

    async def generate_food_image(self, description: str) -> bytes:
        """Render an appetizing photo of a described food."""
        image = await self._guard(
            "generate_food_image",
            lambda: self.client.generate_image(
                model=self.image_model,
                prompt=(
                    "A delicious, high-quality, professional food photography "
                    f"shot of {description}. Bright, appetizing, healthy."
                ),
            ),
        )
        if not image:
            raise CollaboratorUnavailableError("generate_food_image")
        return image

    async def edit_food_image(self, image: bytes, prompt: str) -> bytes:
        """Apply a requested edit to a meal photo."""
        edited = await self._guard(
            "edit_food_image",
            lambda: self.client.edit_image(
                model=self.image_model, image=image, prompt=prompt
            ),
        )
        if not edited:
            raise CollaboratorUnavailableError("edit_food_image")
        return edited

    async def summarize_week(self, logs: list[DailyLog]) -> str:
        """Write a progress report for recent logs."""
        history = [log_to_dict(log, include_images=False) for log in logs]
        return await self._text(
            "summarize_week",
            model=self.report_model,
            instructions=_REPORT_INSTRUCTIONS,
            prompt=(
                "Analyze this weekly food log history JSON and write a "
                "professional progress report.\n"
                f"Data: {json.dumps(history)}\n\n"
                "Format Requirements:\n"
                "- Use **bold** for key insights.\n"
                "- Write in clear, encouraging paragraphs.\n"
                '- Start with a "Weekly Snapshot" header.\n'
                '- End with a "Focus for Next Week" section.\n'
                "- Do NOT use JSON or markdown code blocks."
            ),
        )

    async def analyze_day(self, log: DailyLog) -> DailyAnalysis:
        """Review one day's log with actionable advice."""
        payload = log_to_dict(log, include_images=False)
        payload.pop("analysis", None)
        raw = await self._guard(
            "analyze_day",
            lambda: self.client.structured(
                model=self.report_model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=None,
                prompt=(
                    f"Analyze this daily log: {json.dumps(payload)}. Did the "
                    "user meet their goals? Provide actionable advice for "
                    "tomorrow."
                ),
                image_data_urls=[],
                schema_name="daily_analysis",
                schema=ANALYSIS_SCHEMA,
            ),
        )
        return self._validate("analyze_day", DailyAnalysis.model_validate, raw)

    async def _text(
        self,
        use_case: str,
        *,
        model: str,
        instructions: str,
        prompt: str,
        history: list[ChatTurn] | None = None,
    ) -> str:
        text = await self._guard(
            use_case,
            lambda: self.client.reply(
                model=model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=instructions,
                prompt=prompt,
                history=history or [],
            ),
        )
        if not text or not text.strip():
            _logger.warning("Coach returned an empty reply for %s", use_case)
            raise CollaboratorUnavailableError(use_case)
        return text.strip()

    async def _guard(self, use_case: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except Exception as exc:
            _logger.warning("Coach call failed for %s: %s", use_case, exc)
            raise CollaboratorUnavailableError(use_case) from exc

    def _validate(
        self, use_case: str, parse: Callable[[object], T], raw: object
    ) -> T:
        try:
            return parse(raw)
        except ValueError as exc:
            _logger.warning("Coach returned invalid data for %s: %s", use_case, exc)
            raise CollaboratorUnavailableError(use_case) from exc


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
