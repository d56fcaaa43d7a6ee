"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

import pytest

from slimlogic.config import Settings
from slimlogic.containers import AppContainer
from slimlogic.domain.coach import ChatTurn
from slimlogic.domain.models import DailyLog, Session, UserProfile, UserRecord
from slimlogic.services.accounts import AccountService, CredentialRepository
from slimlogic.services.clock import Clock
from slimlogic.services.coach import CoachClient, CoachService
from slimlogic.services.logs import DailyLogStore, LogRepository
from slimlogic.services.session_registry import SessionRegistry
from slimlogic.services.sessions import SessionManager
from slimlogic.services.tracker import TrackerController

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-bytes"


@dataclass
class InMemoryCredentialRepository(CredentialRepository):
    """In-memory credential repository for tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    profile_updates: list[str] = field(default_factory=list)

    def get_user(self, username: str) -> UserRecord | None:
        return self.users.get(username)

    def create_user(self, record: UserRecord) -> None:
        self.users[record.username] = record

    def update_profile(self, username: str, profile: UserProfile) -> None:
        record = self.users[username]
        self.users[username] = UserRecord(
            username=record.username,
            password_hash=record.password_hash,
            profile=profile,
        )
        self.profile_updates.append(username)


@dataclass
class InMemoryLogRepository(LogRepository):
    """In-memory log repository that records every save."""

    collections: dict[str, list[DailyLog]] = field(default_factory=dict)
    saves: list[str] = field(default_factory=list)

    def load(self, username: str) -> list[DailyLog]:
        return list(self.collections.get(username, []))

    def save(self, username: str, logs: list[DailyLog]) -> None:
        self.collections[username] = list(logs)
        self.saves.append(username)


@dataclass
class FixedClock(Clock):
    """Clock frozen at a given instant until advanced."""

    current: datetime = field(
        default_factory=lambda: datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
    )

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, days: int = 1) -> None:
        self.current = self.current + timedelta(days=days)


@dataclass
class FakeCoachClient(CoachClient):
    """Fake coach client returning canned payloads.

    Names in ``failing`` make the matching call raise: a schema name for
    structured calls, or "reply", "generate_image" and "edit_image".
    """

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "food_assessment": {
                "is_specific": True,
                "clarifying_questions": None,
                "food_name": "Grilled chicken breast",
                "estimated_macros": {
                    "calories": 280,
                    "protein": 53,
                    "carbs": 0,
                    "fats": 6,
                    "saturated_fats": 1.7,
                    "sugars": 0,
                },
            },
            "choice_evaluation": {
                "recommendation": "Yes",
                "reason": "It fits your remaining budget.",
            },
            "healthy_alternative": {
                "original_food": "Pepperoni pizza",
                "healthier_alternative": "Cauliflower crust veggie pizza",
                "why_it_is_better": "Less saturated fat and fewer calories.",
                "calorie_difference": 350,
            },
            "daily_analysis": {
                "verdict": "Good Day",
                "summary": "You stayed under your limit.",
                "dos": ["Keep the protein high"],
                "donts": ["Skip the late snacks"],
            },
        }
    )
    reply_text: str = "Stay on track."
    image: bytes = PNG_BYTES
    failing: set[str] = field(default_factory=set)
    calls: list[dict[str, object]] = field(default_factory=list)

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
        self.calls.append(
            {
                "kind": schema_name,
                "model": model,
                "prompt": prompt,
                "images": image_data_urls,
            }
        )
        if schema_name in self.failing:
            raise RuntimeError(f"{schema_name} failed")
        return dict(self.payloads[schema_name])

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
        self.calls.append(
            {
                "kind": "reply",
                "model": model,
                "prompt": prompt,
                "instructions": instructions,
                "history": list(history),
            }
        )
        if "reply" in self.failing:
            raise RuntimeError("reply failed")
        return self.reply_text

    async def generate_image(self, *, model: str, prompt: str) -> bytes:
        self.calls.append({"kind": "generate_image", "model": model, "prompt": prompt})
        if "generate_image" in self.failing:
            raise RuntimeError("generate_image failed")
        return self.image

    async def edit_image(self, *, model: str, image: bytes, prompt: str) -> bytes:
        self.calls.append({"kind": "edit_image", "model": model, "prompt": prompt})
        if "edit_image" in self.failing:
            raise RuntimeError("edit_image failed")
        return self.image

    def kinds(self) -> list[str]:
        return [str(call["kind"]) for call in self.calls]


def sign_up(
    tracker: TrackerController,
    username: str = "alice",
    password: str = "secret",
    weight_lbs: float = 180,
) -> Session:
    """Create a male 30-year-old, 170 cm account through the tracker."""
    return tracker.sign_up(
        username=username,
        password=password,
        age=30,
        gender="male",
        height_cm=170,
        weight_lbs=weight_lbs,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def credential_repository() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def log_repository() -> InMemoryLogRepository:
    return InMemoryLogRepository()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def coach_client() -> FakeCoachClient:
    return FakeCoachClient()


@pytest.fixture
def coach_service(settings: Settings, coach_client: FakeCoachClient) -> CoachService:
    return CoachService(
        client=coach_client,
        model=settings.openai_model,
        fast_model=settings.openai_fast_model,
        report_model=settings.openai_report_model,
        image_model=settings.openai_image_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )


@pytest.fixture
def log_store(
    log_repository: InMemoryLogRepository, clock: FixedClock
) -> DailyLogStore:
    return DailyLogStore(repository=log_repository, clock=clock)


@pytest.fixture
def session_manager(
    credential_repository: InMemoryCredentialRepository, log_store: DailyLogStore
) -> SessionManager:
    return SessionManager(
        accounts=AccountService(credential_repository), log_store=log_store
    )


@pytest.fixture
def tracker(
    session_manager: SessionManager, coach_service: CoachService
) -> TrackerController:
    return TrackerController(sessions=session_manager, coach=coach_service)


@pytest.fixture
def session_registry(
    credential_repository: InMemoryCredentialRepository,
    log_repository: InMemoryLogRepository,
    clock: FixedClock,
    coach_service: CoachService,
) -> SessionRegistry:
    return SessionRegistry(
        accounts=AccountService(credential_repository),
        log_repository=log_repository,
        clock=clock,
        coach=coach_service,
    )


@pytest.fixture
def container(
    settings: Settings,
    coach_service: CoachService,
    session_registry: SessionRegistry,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        coach_service=coach_service,
        session_registry=session_registry,
        close_resources=close_resources,
    )
