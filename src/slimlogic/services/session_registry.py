"""Per-client session tokens."""

import logging
import secrets
from dataclasses import dataclass, field

from slimlogic.domain.models import Session
from slimlogic.services.accounts import AccountService
from slimlogic.services.clock import Clock
from slimlogic.services.coach import CoachService
from slimlogic.services.errors import NotAuthenticatedError
from slimlogic.services.logs import DailyLogStore, LogRepository
from slimlogic.services.sessions import SessionManager
from slimlogic.services.tracker import TrackerController

_logger = logging.getLogger(__name__)


@dataclass
class SessionRegistry:
    """Maps session tokens to their own tracker, session and log store.

    A token exists only after a successful sign-up or log-in, so every
    tracker reachable through a token has an active session.
    """

    accounts: AccountService
    log_repository: LogRepository
    clock: Clock
    coach: CoachService
    trackers: dict[str, TrackerController] = field(default_factory=dict)

    def sign_up(  # noqa: PLR0913
        self,
        username: str,
        password: str,
        age: object,
        gender: object,
        height_cm: object,
        weight_lbs: object,
    ) -> tuple[str, Session]:
        """Create an account and return a token for its new session."""
        tracker = self._new_tracker()
        session = tracker.sign_up(
            username=username,
            password=password,
            age=age,
            gender=gender,
            height_cm=height_cm,
            weight_lbs=weight_lbs,
        )
        return self._issue(tracker), session

    def log_in(self, username: str, password: str) -> tuple[str, Session]:
        """Verify credentials and return a token for a new session."""
        tracker = self._new_tracker()
        session = tracker.log_in(username, password)
        return self._issue(tracker), session

    def resolve(self, token: str | None) -> TrackerController:
        """Return the tracker for a token or raise when it is unknown."""
        tracker = self.trackers.get(token) if token else None
        if tracker is None or not tracker.sessions.is_active:
            raise NotAuthenticatedError()
        return tracker

    def log_out(self, token: str | None) -> None:
        """End the session behind a token; unknown tokens are ignored."""
        tracker = self.trackers.pop(token, None) if token else None
        if tracker is not None:
            tracker.log_out()

    def _new_tracker(self) -> TrackerController:
        log_store = DailyLogStore(repository=self.log_repository, clock=self.clock)
        sessions = SessionManager(accounts=self.accounts, log_store=log_store)
        return TrackerController(sessions=sessions, coach=self.coach)

    def _issue(self, tracker: TrackerController) -> str:
        token = secrets.token_urlsafe(32)
        self.trackers[token] = tracker
        username = tracker.sessions.require_session().username
        _logger.info("Opened session for %s", username)
        return token
