"""Tests for the AI coach service."""

import asyncio
from datetime import UTC, date, datetime

import pytest

from slimlogic.domain.models import DailyLog, FoodEntry, MacroNutrients
from slimlogic.services.coach import CoachService, detect_mime_type, to_data_url
from slimlogic.services.errors import CollaboratorUnavailableError
from tests.conftest import PNG_BYTES, FakeCoachClient


def test_assess_food_returns_validated_estimate(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    assessment = asyncio.run(
        coach_service.assess_food("chicken", image=PNG_BYTES)
    )

    assert assessment.is_ready
    assert assessment.food_name == "Grilled chicken breast"
    assert assessment.estimated_macros is not None
    assert assessment.estimated_macros.saturated_fats == 1.7
    call = coach_client.calls[0]
    assert call["images"] == [to_data_url(PNG_BYTES)]


def test_assess_food_includes_previous_answers(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    asyncio.run(
        coach_service.assess_food(
            "sandwich",
            previous_questions=["What bread?"],
            answers=["Whole wheat"],
        )
    )

    prompt = str(coach_client.calls[0]["prompt"])
    assert "What bread?" in prompt
    assert "Whole wheat" in prompt


def test_assess_food_with_questions_is_not_ready(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    coach_client.payloads["food_assessment"] = {
        "is_specific": False,
        "clarifying_questions": ["What bread?", "How large?"],
        "food_name": None,
        "estimated_macros": None,
    }

    assessment = asyncio.run(coach_service.assess_food("sandwich"))

    assert not assessment.is_ready
    assert assessment.clarifying_questions == ["What bread?", "How large?"]


def test_malformed_output_raises_unavailable(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    coach_client.payloads["daily_analysis"] = {"verdict": "Great", "summary": 3}

    with pytest.raises(CollaboratorUnavailableError) as exc_info:
        asyncio.run(coach_service.analyze_day(DailyLog(date=date(2026, 3, 10))))

    assert exc_info.value.retryable
    assert exc_info.value.use_case == "analyze_day"


def test_negative_macros_are_rejected(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    payload = dict(coach_client.payloads["food_assessment"])
    payload["estimated_macros"] = {
        "calories": -5,
        "protein": 1,
        "carbs": 1,
        "fats": 1,
        "saturated_fats": 0,
        "sugars": 0,
    }
    coach_client.payloads["food_assessment"] = payload

    with pytest.raises(CollaboratorUnavailableError):
        asyncio.run(coach_service.assess_food("mystery"))


def test_client_failure_raises_unavailable(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    coach_client.failing.add("reply")

    with pytest.raises(CollaboratorUnavailableError):
        asyncio.run(coach_service.chat("hi", [], "context"))


def test_empty_reply_raises_unavailable(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    coach_client.reply_text = "   "

    with pytest.raises(CollaboratorUnavailableError):
        asyncio.run(
            coach_service.food_verdict(
                "apple", MacroNutrients(95, 0.5, 25, 0.3, 0.1, 19)
            )
        )


def test_food_verdict_uses_fast_model(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    verdict = asyncio.run(
        coach_service.food_verdict("apple", MacroNutrients(95, 0.5, 25, 0.3, 0.1, 19))
    )

    assert verdict == "Stay on track."
    assert coach_client.calls[0]["model"] == coach_service.fast_model
    assert "saturatedFats" in str(coach_client.calls[0]["prompt"])


def test_chat_embeds_context_in_instructions(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    asyncio.run(coach_service.chat("what now?", [], "Remaining Calories: 500"))

    assert "Remaining Calories: 500" in str(coach_client.calls[0]["instructions"])


def test_summarize_week_omits_images(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    log = DailyLog(
        date=date(2026, 3, 10),
        entries=(
            FoodEntry(
                id="a",
                name="toast",
                timestamp=datetime(2026, 3, 10, 8, tzinfo=UTC),
                macros=MacroNutrients(120, 4, 20, 2, 0.5, 2),
                image_uri=to_data_url(PNG_BYTES),
            ),
        ),
    )

    summary = asyncio.run(coach_service.summarize_week([log]))

    assert summary == "Stay on track."
    prompt = str(coach_client.calls[0]["prompt"])
    assert "toast" in prompt
    assert "imageUri" not in prompt
    assert coach_client.calls[0]["model"] == coach_service.report_model


def test_generate_food_image_returns_bytes(
    coach_service: CoachService, coach_client: FakeCoachClient
) -> None:
    image = asyncio.run(coach_service.generate_food_image("veggie pizza"))

    assert image == PNG_BYTES
    assert "veggie pizza" in str(coach_client.calls[0]["prompt"])


def test_detect_mime_type_signatures() -> None:
    assert detect_mime_type(PNG_BYTES) == "image/png"
    assert detect_mime_type(b"\xff\xd8\xff\xe0data") == "image/jpeg"
    assert detect_mime_type(b"RIFF\x00\x00\x00\x00WEBPdata") == "image/webp"
    assert detect_mime_type(b"unknown") == "image/jpeg"
    assert to_data_url(PNG_BYTES).startswith("data:image/png;base64,")
