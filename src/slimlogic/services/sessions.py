"""Login session management."""

import logging
from dataclasses import dataclass

from slimlogic.domain.models import DailyLog, Session, UserProfile
from slimlogic.services.accounts import AccountService
from slimlogic.services.errors import NotAuthenticatedError
from slimlogic.services.logs import DailyLogStore

_logger = logging.getLogger(__name__)


@dataclass
class SessionManager:
    """Owns the active session and keeps the log store bound to it.

    Any change of session identity rebinds the log store, so its contents
    always mirror the active user's persisted collection.
    """

    accounts: AccountService
    log_store: DailyLogStore
    session: Session | None = None

    @property
    def is_active(self) -> bool:
        return self.session is not None

    def require_session(self) -> Session:
        """Return the active session or raise when logged out."""
        if self.session is None:
            raise NotAuthenticatedError()
        return self.session

    def sign_up(  # noqa: PLR0913
        self,
        username: str,
        password: str,
        age: object,
        gender: object,
        height_cm: object,
        weight_lbs: object,
    ) -> Session:
        """Create an account and start a session with an empty log history."""
        profile = self.accounts.register(
            username=username,
            password=password,
            age=age,
            gender=gender,
            height_cm=height_cm,
            weight_lbs=weight_lbs,
        )
        self.session = Session(profile=profile)
        self.log_store.reset(profile.username)
        _logger.info("Signed up %s", profile.username)
        return self.session

    def log_in(self, username: str, password: str) -> Session:
        """Verify credentials and load the user's persisted logs."""
        profile = self.accounts.authenticate(username, password)
        self.session = Session(profile=profile)
        self.log_store.load(profile.username)
        _logger.info("Logged in %s", profile.username)
        return self.session

    def log_out(self) -> None:
        """End the session and drop in-memory logs."""
        if self.session is not None:
            _logger.info("Logged out %s", self.session.username)
        self.session = None
        self.log_store.clear()

    def update_weight(self, weight: float) -> UserProfile:
        """Update the active profile's current weight everywhere it is held."""
        session = self.require_session()
        profile = self.accounts.record_weight(session.profile, weight)
        self.session = Session(profile=profile)
        return profile

    def check_in(self, weight: float) -> tuple[DailyLog, UserProfile]:
        """Record today's weight in the log store and the profile."""
        self.require_session()
        log = self.log_store.set_weight(weight)
        profile = self.update_weight(weight)
        return log, profile
