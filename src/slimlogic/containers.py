"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from slimlogic.adapters.openai_coach_client import OpenAICoachClient
from slimlogic.adapters.supabase_credential_repository import (
    SupabaseCredentialRepository,
)
from slimlogic.adapters.supabase_log_repository import SupabaseLogRepository
from slimlogic.config import Settings, parse_timezone
from slimlogic.services.accounts import AccountService
from slimlogic.services.clock import SystemClock
from slimlogic.services.coach import CoachService
from slimlogic.services.session_registry import SessionRegistry


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    coach_service: CoachService
    session_registry: SessionRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    coach_client = OpenAICoachClient.create(resolved_settings.openai_api_key)
    coach_service = CoachService(
        client=coach_client,
        model=resolved_settings.openai_model,
        fast_model=resolved_settings.openai_fast_model,
        report_model=resolved_settings.openai_report_model,
        image_model=resolved_settings.openai_image_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    session_registry = SessionRegistry(
        accounts=AccountService(SupabaseCredentialRepository(supabase_client)),
        log_repository=SupabaseLogRepository(supabase_client),
        clock=SystemClock(parse_timezone(resolved_settings.timezone)),
        coach=coach_service,
    )

    async def close_resources() -> None:
        await coach_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        coach_service=coach_service,
        session_registry=session_registry,
        close_resources=close_resources,
    )
