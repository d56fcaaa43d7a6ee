"""Error kinds raised by tracker services."""


class TrackerError(Exception):
    """Base error carrying the HTTP status used to surface it."""

    status_code = 400
    retryable = False


class DuplicateUserError(TrackerError):
    """Sign-up attempted with a username that already exists."""

    status_code = 409

    def __init__(self, username: str) -> None:
        super().__init__("User already exists. Please log in.")
        self.username = username


class UserNotFoundError(TrackerError):
    """Log-in attempted for an unknown username."""

    status_code = 404

    def __init__(self, username: str) -> None:
        super().__init__("User not found. Please create an account first.")
        self.username = username


class BadCredentialError(TrackerError):
    """Password did not match the stored credential."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Incorrect password.")


class ValidationError(TrackerError):
    """Missing or malformed user input."""

    status_code = 422


class NotAuthenticatedError(TrackerError):
    """An operation needing a session ran with none active."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Not logged in.")


class CollaboratorUnavailableError(TrackerError):
    """The AI coach failed or returned unusable data."""

    status_code = 503
    retryable = True

    def __init__(self, use_case: str) -> None:
        super().__init__(f"The coach is unavailable ({use_case}). Please try again.")
        self.use_case = use_case


class RequestInFlightError(TrackerError):
    """A coach request is already pending for this flow."""

    status_code = 409
    retryable = True

    def __init__(self, flow: str) -> None:
        super().__init__("A request is already in progress. Please wait.")
        self.flow = flow
