"""View controller routing user actions to the log store and coach."""

import json
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from slimlogic.domain.coach import (
    ChatTurn,
    ChoiceEvaluation,
    DailyAnalysis,
    FoodAssessment,
    HealthyAlternative,
)
from slimlogic.domain.models import (
    DailyLog,
    FoodEntry,
    MacroNutrients,
    Session,
    UserProfile,
)
from slimlogic.services.coach import CoachService, to_data_url
from slimlogic.services.errors import (
    CollaboratorUnavailableError,
    NotAuthenticatedError,
    RequestInFlightError,
    ValidationError,
)
from slimlogic.services.logs import DailyLogStore
from slimlogic.services.sessions import SessionManager
from slimlogic.services.targets import round_half_up

_logger = logging.getLogger(__name__)

VERDICT_FALLBACK = "Could not generate verdict."
SUMMARY_FALLBACK = "Could not generate summary."
EMPTY_REPORT_SUMMARY = "No summary available."
CHOICE_FALLBACK = ChoiceEvaluation(
    recommendation="No", reason="Could not analyze. Better safe than sorry."
)
ANALYSIS_FALLBACK = DailyAnalysis(
    verdict="Needs Improvement",
    summary="Could not generate analysis.",
    dos=["Keep tracking"],
    donts=["Give up"],
)
REPORT_DAYS = 7
CHAT_CONTEXT_DAYS = 3


class AppView(StrEnum):
    """Top-level screens of the app."""

    TRACKER = "TRACKER"
    ADVISOR = "ADVISOR"
    ALTERNATIVES = "ALTERNATIVES"
    HISTORY = "HISTORY"
    REPORTS = "REPORTS"


@dataclass(frozen=True)
class Dashboard:
    """Today's progress against the calorie limit."""

    day: date
    entries: tuple[FoodEntry, ...]
    weight: float | None
    previous_weight: float | None
    calories_consumed: float
    daily_calorie_limit: int
    calories_left: float
    percent_consumed: int
    over_limit: bool


@dataclass(frozen=True)
class CheckInResult:
    """Outcome of a weight check-in."""

    log: DailyLog
    profile: UserProfile
    previous_weight: float | None
    trend: float


@dataclass(frozen=True)
class HistoryDay:
    """One day in the history list."""

    log: DailyLog
    total_calories: float


@dataclass(frozen=True)
class ReportPoint:
    """One chart point of the weekly report."""

    day: date
    label: str
    calories: float
    weight: float | None


@dataclass(frozen=True)
class WeeklyReport:
    """Chart data and narrative for the most recent logs."""

    points: list[ReportPoint]
    summary: str


@dataclass(frozen=True)
class AlternativeSuggestion:
    """A healthier swap with an optional rendered image."""

    alternative: HealthyAlternative
    image: bytes | None


@dataclass
class TrackerController:
    """Routes UI actions for the active session.

    Only one coach request may be pending per interactive flow; a second one
    raises ``RequestInFlightError`` until the first finishes.
    """

    sessions: SessionManager
    coach: CoachService
    view: AppView = AppView.TRACKER
    chat_history: list[ChatTurn] = field(default_factory=list)
    _pending: set[str] = field(default_factory=set, init=False, repr=False)

    @property
    def log_store(self) -> DailyLogStore:
        return self.sessions.log_store

    def show(self, view: AppView) -> AppView:
        """Switch the active view."""
        self.sessions.require_session()
        self.view = view
        return self.view

    def sign_up(  # noqa: PLR0913
        self,
        username: str,
        password: str,
        age: object,
        gender: object,
        height_cm: object,
        weight_lbs: object,
    ) -> Session:
        """Create an account and open the tracker."""
        session = self.sessions.sign_up(
            username=username,
            password=password,
            age=age,
            gender=gender,
            height_cm=height_cm,
            weight_lbs=weight_lbs,
        )
        self._reset_views()
        return session

    def log_in(self, username: str, password: str) -> Session:
        """Log in and open the tracker."""
        session = self.sessions.log_in(username, password)
        self._reset_views()
        return session

    def log_out(self) -> None:
        """Log out and return to the signed-out state."""
        self.sessions.log_out()
        self._reset_views()

    def dashboard(self) -> Dashboard:
        """Return today's progress summary."""
        profile = self.sessions.require_session().profile
        log = self.log_store.today_log()
        consumed = log.total_calories
        limit = profile.daily_calorie_limit
        percent = round_half_up(consumed / limit * 100) if limit else 0
        return Dashboard(
            day=log.date,
            entries=log.entries,
            weight=log.weight,
            previous_weight=self.log_store.previous_weight(),
            calories_consumed=consumed,
            daily_calorie_limit=limit,
            calories_left=max(0.0, limit - consumed),
            percent_consumed=percent,
            over_limit=consumed > limit,
        )

    async def assess_food(
        self,
        description: str,
        image: bytes | None = None,
        previous_questions: list[str] | None = None,
        answers: list[str] | None = None,
    ) -> FoodAssessment:
        """Ask the coach to assess a food description or photo."""
        self.sessions.require_session()
        if not description.strip() and not image:
            raise ValidationError("Describe the food or add a photo.")
        async with self._single_flight("assess"):
            return await self.coach.assess_food(
                description,
                image=image,
                previous_questions=previous_questions,
                answers=answers,
            )

    async def confirm_food(
        self, name: str, macros: MacroNutrients, image: bytes | None = None
    ) -> FoodEntry:
        """Log a confirmed food with a coach verdict."""
        username = self.sessions.require_session().username
        if not name.strip():
            raise ValidationError("Food name is required.")
        async with self._single_flight("confirm"):
            try:
                verdict = await self.coach.food_verdict(name, macros)
            except CollaboratorUnavailableError:
                _logger.info("Logging %s without a verdict", name)
                verdict = VERDICT_FALLBACK
        self._ensure_same_user(username)
        entry = FoodEntry(
            id=uuid.uuid4().hex,
            name=name.strip(),
            timestamp=self.log_store.clock.now(),
            macros=macros,
            verdict=verdict,
            image_uri=to_data_url(image) if image else None,
        )
        self.log_store.add_entry(entry)
        return entry

    def remove_food(self, entry_id: str) -> bool:
        """Remove a logged food wherever it lives."""
        self.sessions.require_session()
        return self.log_store.remove_entry(entry_id)

    def check_in(self, weight: float) -> CheckInResult:
        """Record today's weight and report the change since last time."""
        self.sessions.require_session()
        if weight <= 0:
            raise ValidationError("Weight must be a positive number.")
        previous = self.log_store.previous_weight()
        log, profile = self.sessions.check_in(weight)
        return CheckInResult(
            log=log,
            profile=profile,
            previous_weight=previous,
            trend=weight - previous if previous is not None else 0.0,
        )

    def history(self) -> list[HistoryDay]:
        """Return logged days, newest first."""
        self.sessions.require_session()
        return [
            HistoryDay(log=log, total_calories=log.total_calories)
            for log in self.log_store.sorted_logs()
        ]

    async def analyze_day(self, day: date) -> DailyAnalysis | None:
        """Return the cached or freshly generated review of a day."""
        username = self.sessions.require_session().username
        log = self.log_store.get(day)
        if log is None or not log.entries:
            return None
        if log.analysis is not None:
            return log.analysis
        async with self._single_flight(f"analysis:{day.isoformat()}"):
            try:
                analysis = await self.coach.analyze_day(log)
            except CollaboratorUnavailableError:
                _logger.info("Analysis for %s unavailable", day)
                return ANALYSIS_FALLBACK
        self._ensure_same_user(username)
        self.log_store.cache_analysis(day, analysis)
        return analysis

    async def weekly_report(self) -> WeeklyReport:
        """Return chart data and a narrative for the last seven logged days."""
        self.sessions.require_session()
        recent = self.log_store.sorted_logs(descending=False)[-REPORT_DAYS:]
        points = [
            ReportPoint(
                day=log.date,
                label=log.date.strftime("%a"),
                calories=log.total_calories,
                weight=log.weight,
            )
            for log in recent
        ]
        if not recent:
            return WeeklyReport(points=points, summary=EMPTY_REPORT_SUMMARY)
        async with self._single_flight("report"):
            try:
                summary = await self.coach.summarize_week(recent)
            except CollaboratorUnavailableError:
                summary = SUMMARY_FALLBACK
        return WeeklyReport(points=points, summary=summary)

    async def chat(self, message: str) -> str:
        """Send a message to the advisor and record the exchange."""
        profile = self.sessions.require_session().profile
        text = message.strip()
        if not text:
            raise ValidationError("Message is empty.")
        async with self._single_flight("chat"):
            reply = await self.coach.chat(
                text, list(self.chat_history), self._chat_context(profile)
            )
        self._ensure_same_user(profile.username)
        self.chat_history.append(ChatTurn(role="user", text=text))
        self.chat_history.append(ChatTurn(role="assistant", text=reply))
        return reply

    async def evaluate_choice(
        self, description: str, image: bytes | None = None
    ) -> ChoiceEvaluation:
        """Ask whether a food fits the rest of today's budget."""
        profile = self.sessions.require_session().profile
        if not description.strip() and not image:
            raise ValidationError("Describe the food or add a photo.")
        consumed = self.log_store.calories_consumed()
        limit = profile.daily_calorie_limit
        context = (
            f"Consumed Today: {consumed:g}/{limit}. "
            f"Remaining: {limit - consumed:g} cal."
        )
        async with self._single_flight("evaluate"):
            try:
                return await self.coach.evaluate_choice(description, image, context)
            except CollaboratorUnavailableError:
                return CHOICE_FALLBACK

    async def suggest_alternative(self, image: bytes) -> AlternativeSuggestion:
        """Suggest a healthier swap and try to picture it."""
        self.sessions.require_session()
        async with self._single_flight("alternative"):
            alternative = await self.coach.suggest_alternative(
                image, self._habits_context()
            )
            try:
                rendered = await self.coach.generate_food_image(
                    alternative.healthier_alternative
                )
            except CollaboratorUnavailableError:
                rendered = None
        return AlternativeSuggestion(alternative=alternative, image=rendered)

    async def fix_meal_image(self, image: bytes, prompt: str) -> bytes:
        """Edit a meal photo as described by the prompt."""
        self.sessions.require_session()
        if not prompt.strip():
            raise ValidationError("Describe the change you want.")
        async with self._single_flight("meal_fixer"):
            return await self.coach.edit_food_image(image, prompt.strip())

    def _chat_context(self, profile: UserProfile) -> str:
        consumed = self.log_store.calories_consumed()
        limit = profile.daily_calorie_limit
        recent = [
            {
                "date": log.date.isoformat(),
                "calories": log.total_calories,
                "weight": log.weight,
            }
            for log in self.log_store.sorted_logs(descending=False)[
                -CHAT_CONTEXT_DAYS:
            ]
        ]
        return (
            f"Current Weight: {profile.current_weight:g}lbs. "
            f"Target: {profile.target_weight:g}lbs. "
            f"Daily Calorie Limit: {limit}. Consumed Today: {consumed:g}. "
            f"Remaining Calories: {limit - consumed:g}. "
            f"Recent Logs Summary: {json.dumps(recent)}"
        )

    def _habits_context(self) -> str:
        names: list[str] = []
        for log in self.log_store.sorted_logs():
            for entry in reversed(log.entries):
                if entry.name not in names:
                    names.append(entry.name)
        if not names:
            return "New user"
        return "User tends to eat " + ", ".join(names[:10])

    def _ensure_same_user(self, username: str) -> None:
        # Results that arrive after the session changed are discarded.
        session = self.sessions.session
        if session is None or session.username != username:
            raise NotAuthenticatedError()

    def _reset_views(self) -> None:
        self.view = AppView.TRACKER
        self.chat_history = []

    @asynccontextmanager
    async def _single_flight(self, flow: str) -> AsyncIterator[None]:
        if flow in self._pending:
            raise RequestInFlightError(flow)
        self._pending.add(flow)
        try:
            yield
        finally:
            self._pending.discard(flow)
