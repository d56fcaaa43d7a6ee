"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from slimlogic.api.models import (
    AlternativeRequest,
    AssessFoodRequest,
    ChatRequest,
    ConfirmFoodRequest,
    EditImageRequest,
    EvaluateChoiceRequest,
    LogInRequest,
    SignUpRequest,
    ViewRequest,
    WeightRequest,
)
from slimlogic.app_logging import configure_logging
from slimlogic.containers import AppContainer
from slimlogic.domain.coach import MacroEstimate
from slimlogic.domain.models import (
    DailyLog,
    FoodEntry,
    MacroNutrients,
    Session,
    UserProfile,
)
from slimlogic.services.errors import TrackerError, ValidationError
from slimlogic.services.session_registry import SessionRegistry
from slimlogic.services.tracker import Dashboard, TrackerController

SESSION_HEADER = "X-Session-Token"


def _get_registry(request: Request) -> SessionRegistry:
    container: AppContainer = request.app.state.container
    return container.session_registry


async def require_tracker(
    x_session_token: str | None = Header(default=None, alias=SESSION_HEADER),
    registry: SessionRegistry = Depends(_get_registry),
) -> TrackerController:
    """Resolve the caller's session token to its tracker."""
    return registry.resolve(x_session_token)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(TrackerError)
    async def tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("Request to %s failed: %s", request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc), "retryable": exc.retryable},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/auth/signup")
    async def sign_up(
        payload: SignUpRequest,
        registry: SessionRegistry = Depends(_get_registry),
    ) -> dict[str, object]:
        """Create an account and issue a session token."""
        token, session = registry.sign_up(
            username=payload.username,
            password=payload.password,
            age=payload.age,
            gender=payload.gender,
            height_cm=payload.height_cm,
            weight_lbs=payload.weight_lbs,
        )
        return {"token": token, **_session_payload(session)}

    @app.post("/auth/login")
    async def log_in(
        payload: LogInRequest,
        registry: SessionRegistry = Depends(_get_registry),
    ) -> dict[str, object]:
        """Verify credentials and issue a session token."""
        token, session = registry.log_in(payload.username, payload.password)
        return {"token": token, **_session_payload(session)}

    @app.post("/auth/logout", dependencies=[Depends(require_tracker)])
    async def log_out(
        x_session_token: str | None = Header(default=None, alias=SESSION_HEADER),
        registry: SessionRegistry = Depends(_get_registry),
    ) -> dict[str, str]:
        """End the caller's session and revoke its token."""
        registry.log_out(x_session_token)
        return {"status": "ok"}

    @app.get("/auth/me")
    async def me(
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Return the caller's session."""
        return _session_payload(tracker.sessions.require_session())

    @app.get("/view")
    async def current_view(
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, str]:
        """Return the active view."""
        return {"view": tracker.view.value}

    @app.put("/view")
    async def switch_view(
        payload: ViewRequest, tracker: TrackerController = Depends(require_tracker)
    ) -> dict[str, str]:
        """Switch the active view."""
        return {"view": tracker.show(payload.view).value}

    @app.get("/dashboard")
    async def dashboard(
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Return today's progress."""
        return _dashboard_payload(tracker.dashboard())

    @app.post("/entries/assess")
    async def assess_food(
        payload: AssessFoodRequest,
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Assess a food, possibly returning clarifying questions."""
        assessment = await tracker.assess_food(
            payload.description,
            image=_decode_image(payload.image_base64),
            previous_questions=payload.previous_questions,
            answers=payload.answers,
        )
        return {**assessment.model_dump(), "is_ready": assessment.is_ready}

    @app.post("/entries")
    async def confirm_food(
        payload: ConfirmFoodRequest,
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Log a confirmed food for today."""
        entry = await tracker.confirm_food(
            payload.name,
            _to_macros(payload.macros),
            image=_decode_image(payload.image_base64),
        )
        return _entry_payload(entry)

    @app.delete("/entries/{entry_id}")
    async def remove_food(
        entry_id: str, tracker: TrackerController = Depends(require_tracker)
    ) -> dict[str, bool]:
        """Remove a logged food."""
        return {"removed": tracker.remove_food(entry_id)}

    @app.post("/weight")
    async def check_in(
        payload: WeightRequest,
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Record today's weight."""
        result = tracker.check_in(payload.weight)
        return {
            "log": _log_payload(result.log),
            "profile": _profile_payload(result.profile),
            "previous_weight": result.previous_weight,
            "trend": result.trend,
        }

    @app.get("/history")
    async def history(
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Return logged days, newest first."""
        return {
            "days": [
                {**_log_payload(day.log), "total_calories": day.total_calories}
                for day in tracker.history()
            ]
        }

    @app.post("/history/{day}/analysis")
    async def analyze_day(
        day: date, tracker: TrackerController = Depends(require_tracker)
    ) -> dict[str, object]:
        """Return the coach review for a logged day."""
        analysis = await tracker.analyze_day(day)
        return {"analysis": analysis.model_dump() if analysis else None}

    @app.get("/reports/weekly")
    async def weekly_report(
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Return chart data and the coach narrative for the last week."""
        report = await tracker.weekly_report()
        return {
            "points": [
                {
                    "date": point.day.isoformat(),
                    "label": point.label,
                    "calories": point.calories,
                    "weight": point.weight,
                }
                for point in report.points
            ],
            "summary": report.summary,
        }

    @app.post("/advisor/chat")
    async def chat(
        payload: ChatRequest, tracker: TrackerController = Depends(require_tracker)
    ) -> dict[str, object]:
        """Send a message to the advisor."""
        reply = await tracker.chat(payload.message)
        return {
            "reply": reply,
            "history": [turn.model_dump() for turn in tracker.chat_history],
        }

    @app.post("/advisor/evaluate")
    async def evaluate_choice(
        payload: EvaluateChoiceRequest,
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Ask whether a food fits today's budget."""
        result = await tracker.evaluate_choice(
            payload.description, image=_decode_image(payload.image_base64)
        )
        return result.model_dump()

    @app.post("/alternatives")
    async def suggest_alternative(
        payload: AlternativeRequest,
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Suggest a healthier swap for a photographed food."""
        image = _require_image(payload.image_base64)
        suggestion = await tracker.suggest_alternative(image)
        return {
            **suggestion.alternative.model_dump(),
            "image_base64": _encode_image(suggestion.image),
        }

    @app.post("/images/edit")
    async def edit_image(
        payload: EditImageRequest,
        tracker: TrackerController = Depends(require_tracker),
    ) -> dict[str, object]:
        """Edit a meal photo as requested."""
        image = _require_image(payload.image_base64)
        edited = await tracker.fix_meal_image(image, payload.prompt)
        return {"image_base64": _encode_image(edited)}

    return app


def _decode_image(value: str | None) -> bytes | None:
    """Decode a base64 image, accepting an optional data URL prefix."""
    if not value:
        return None
    encoded = value.split(",", 1)[1] if value.startswith("data:") else value
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image must be base64 encoded.") from exc


def _require_image(value: str | None) -> bytes:
    image = _decode_image(value)
    if not image:
        raise ValidationError("An image is required.")
    return image


def _encode_image(image: bytes | None) -> str | None:
    if image is None:
        return None
    return base64.b64encode(image).decode("ascii")


def _to_macros(estimate: MacroEstimate) -> MacroNutrients:
    return MacroNutrients(
        calories=estimate.calories,
        protein=estimate.protein,
        carbs=estimate.carbs,
        fats=estimate.fats,
        saturated_fats=estimate.saturated_fats,
        sugars=estimate.sugars,
    )


def _session_payload(session: Session) -> dict[str, object]:
    return {"profile": _profile_payload(session.profile)}


def _profile_payload(profile: UserProfile) -> dict[str, object]:
    return asdict(profile)


def _entry_payload(entry: FoodEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "name": entry.name,
        "timestamp": entry.timestamp.isoformat(),
        "macros": asdict(entry.macros),
        "verdict": entry.verdict,
        "image_uri": entry.image_uri,
    }


def _log_payload(log: DailyLog) -> dict[str, object]:
    return {
        "date": log.date.isoformat(),
        "entries": [_entry_payload(entry) for entry in log.entries],
        "weight": log.weight,
        "notes": log.notes,
        "analysis": log.analysis.model_dump() if log.analysis else None,
    }


def _dashboard_payload(dashboard: Dashboard) -> dict[str, object]:
    return {
        "date": dashboard.day.isoformat(),
        "entries": [_entry_payload(entry) for entry in dashboard.entries],
        "weight": dashboard.weight,
        "previous_weight": dashboard.previous_weight,
        "calories_consumed": dashboard.calories_consumed,
        "daily_calorie_limit": dashboard.daily_calorie_limit,
        "calories_left": dashboard.calories_left,
        "percent_consumed": dashboard.percent_consumed,
        "over_limit": dashboard.over_limit,
    }
