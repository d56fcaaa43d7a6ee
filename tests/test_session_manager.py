"""Tests for accounts and session lifecycle."""

import logging

import pytest

from slimlogic.services.errors import (
    BadCredentialError,
    DuplicateUserError,
    NotAuthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from slimlogic.services.sessions import SessionManager
from slimlogic.services.targets import calorie_target
from tests.conftest import InMemoryCredentialRepository, InMemoryLogRepository


def _sign_up(  # type: ignore[no-untyped-def]
    manager: SessionManager, username: str = "alice", **overrides
):
    fields: dict[str, object] = {
        "password": "secret",
        "age": 30,
        "gender": "male",
        "height_cm": 170,
        "weight_lbs": 180,
    }
    fields.update(overrides)
    return manager.sign_up(username=username, **fields)  # type: ignore[arg-type]


def test_sign_up_creates_profile_and_session(
    session_manager: SessionManager,
    credential_repository: InMemoryCredentialRepository,
    log_repository: InMemoryLogRepository,
) -> None:
    session = _sign_up(session_manager, username="  alice  ")

    profile = session.profile
    assert profile.username == "alice"
    assert profile.daily_calorie_limit == 1581
    assert profile.target_weight == 170
    assert profile.activity_level == "sedentary"
    assert session_manager.is_active
    assert credential_repository.users["alice"].password_hash != "secret"
    assert log_repository.collections["alice"] == []


def test_sign_up_accepts_numeric_strings(session_manager: SessionManager) -> None:
    session = _sign_up(session_manager, age="30", height_cm="170", weight_lbs="180")

    assert session.profile.age == 30
    assert session.profile.daily_calorie_limit == 1581


def test_duplicate_sign_up_leaves_record_unchanged(
    session_manager: SessionManager,
    credential_repository: InMemoryCredentialRepository,
) -> None:
    _sign_up(session_manager)
    session_manager.log_out()
    original = credential_repository.users["alice"]

    with pytest.raises(DuplicateUserError):
        _sign_up(session_manager, password="other", weight_lbs=250)

    assert credential_repository.users["alice"] == original
    assert not session_manager.is_active


@pytest.mark.parametrize(
    "overrides",
    [
        {"age": None},
        {"height_cm": ""},
        {"weight_lbs": "heavy"},
        {"weight_lbs": 0},
        {"age": float("nan")},
        {"gender": "other"},
    ],
)
def test_sign_up_rejects_incomplete_forms(
    session_manager: SessionManager,
    credential_repository: InMemoryCredentialRepository,
    overrides: dict[str, object],
) -> None:
    with pytest.raises(ValidationError):
        _sign_up(session_manager, **overrides)

    assert credential_repository.users == {}
    assert not session_manager.is_active


def test_sign_up_requires_username(session_manager: SessionManager) -> None:
    with pytest.raises(ValidationError):
        _sign_up(session_manager, username="   ")


def test_log_in_unknown_user(session_manager: SessionManager) -> None:
    with pytest.raises(UserNotFoundError):
        session_manager.log_in("nobody", "secret")
    assert not session_manager.is_active


def test_log_in_with_wrong_password_keeps_session_inactive(
    session_manager: SessionManager,
) -> None:
    _sign_up(session_manager)
    session_manager.log_out()

    with pytest.raises(BadCredentialError):
        session_manager.log_in("alice", "wrong")

    assert session_manager.session is None


def test_log_out_then_log_in_restores_logs(session_manager: SessionManager) -> None:
    _sign_up(session_manager)
    session_manager.check_in(178)
    logs_before = list(session_manager.log_store.logs)

    session_manager.log_out()
    assert session_manager.log_store.logs == []
    assert session_manager.log_store.username is None

    session = session_manager.log_in("alice", "secret")

    assert session_manager.log_store.logs == logs_before
    assert session.profile.current_weight == 178


def test_log_store_follows_session_identity(session_manager: SessionManager) -> None:
    _sign_up(session_manager, username="alice")
    session_manager.check_in(179)
    session_manager.log_out()

    _sign_up(session_manager, username="bob", weight_lbs=200)

    assert session_manager.log_store.username == "bob"
    assert session_manager.log_store.logs == []


def test_check_in_updates_weight_but_not_calorie_limit(
    session_manager: SessionManager,
    credential_repository: InMemoryCredentialRepository,
) -> None:
    _sign_up(session_manager)

    log, profile = session_manager.check_in(170)

    assert log.weight == 170
    assert profile.current_weight == 170
    assert profile.daily_calorie_limit == 1581
    stored = credential_repository.users["alice"].profile
    assert stored.current_weight == 170
    assert credential_repository.profile_updates == ["alice"]


def test_operations_require_session(session_manager: SessionManager) -> None:
    with pytest.raises(NotAuthenticatedError):
        session_manager.require_session()
    with pytest.raises(NotAuthenticatedError):
        session_manager.check_in(150)


def test_sign_up_keeps_fractional_age_for_profile_and_target(
    session_manager: SessionManager,
) -> None:
    session = _sign_up(session_manager, age="30.7")

    assert session.profile.age == 30.7
    assert session.profile.daily_calorie_limit == calorie_target(
        180, 170, 30.7, "male"
    )


def test_weight_for_missing_record_is_logged(
    session_manager: SessionManager,
    credential_repository: InMemoryCredentialRepository,
) -> None:
    records: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    _sign_up(session_manager)
    credential_repository.users.clear()
    logger = logging.getLogger("slimlogic.services.accounts")
    handler = _Collect(level=logging.WARNING)
    logger.addHandler(handler)
    try:
        profile = session_manager.update_weight(175)
    finally:
        logger.removeHandler(handler)

    assert profile.current_weight == 175
    assert credential_repository.profile_updates == []
    assert any("alice" in record.getMessage() for record in records)
