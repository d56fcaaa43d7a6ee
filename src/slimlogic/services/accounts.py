"""Credential and profile records."""

import logging
import math
from dataclasses import dataclass, replace
from typing import Protocol

from slimlogic.domain.models import Gender, UserProfile, UserRecord
from slimlogic.services.errors import (
    BadCredentialError,
    DuplicateUserError,
    UserNotFoundError,
    ValidationError,
)
from slimlogic.services.passwords import hash_password, verify_password
from slimlogic.services.targets import calorie_target

_logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_LOSS_GOAL_LBS = 10


class CredentialRepository(Protocol):
    """Persistence interface for credentials and embedded profiles."""

    def get_user(self, username: str) -> UserRecord | None:
        """Return the stored record for a username, if present."""

    def create_user(self, record: UserRecord) -> None:
        """Store a new user record."""

    def update_profile(self, username: str, profile: UserProfile) -> None:
        """Replace the embedded profile copy for a user."""


@dataclass
class AccountService:
    """Creates, verifies and amends stored user records."""

    repository: CredentialRepository

    def register(  # noqa: PLR0913
        self,
        username: str,
        password: str,
        age: object,
        gender: object,
        height_cm: object,
        weight_lbs: object,
    ) -> UserProfile:
        """Create a user and return the new profile."""
        clean_username = _clean_username(username)
        if self.repository.get_user(clean_username) is not None:
            raise DuplicateUserError(clean_username)

        weight = _parse_positive(weight_lbs)
        height = _parse_positive(height_cm)
        parsed_age = _parse_positive(age)
        if weight is None or height is None or parsed_age is None:
            raise ValidationError("Please fill all fields to calculate your plan.")
        parsed_gender = _parse_gender(gender)

        profile = UserProfile(
            username=clean_username,
            age=parsed_age,
            gender=parsed_gender,
            height_cm=height,
            current_weight=weight,
            target_weight=weight - DEFAULT_WEIGHT_LOSS_GOAL_LBS,
            daily_calorie_limit=calorie_target(
                weight, height, parsed_age, parsed_gender
            ),
        )
        self.repository.create_user(
            UserRecord(
                username=clean_username,
                password_hash=hash_password(password),
                profile=profile,
            )
        )
        return profile

    def authenticate(self, username: str, password: str) -> UserProfile:
        """Return the stored profile when the credentials match."""
        clean_username = _clean_username(username)
        record = self.repository.get_user(clean_username)
        if record is None:
            raise UserNotFoundError(clean_username)
        if not verify_password(password, record.password_hash):
            raise BadCredentialError()
        return record.profile

    def record_weight(self, profile: UserProfile, weight: float) -> UserProfile:
        """Store a new current weight, keeping the calorie limit unchanged."""
        updated = replace(profile, current_weight=weight)
        if self.repository.get_user(profile.username) is None:
            _logger.warning(
                "No stored record for %s; weight kept in session only",
                profile.username,
            )
            return updated
        self.repository.update_profile(profile.username, updated)
        return updated


def _clean_username(username: str) -> str:
    cleaned = (username or "").strip()
    if not cleaned:
        raise ValidationError("Username is required")
    return cleaned


def _parse_positive(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _parse_gender(value: object) -> Gender:
    if value == "male":
        return "male"
    if value == "female":
        return "female"
    raise ValidationError("Gender must be 'male' or 'female'.")
