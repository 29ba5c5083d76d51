"""User-visible and persistence errors raised by the pronunciation workflow.

Provider failures are not exceptions here: vendor calls return
``ProviderResult`` values and never raise past the client boundary.
"""

from typing import Any, Dict, Optional


class EchoMindError(Exception):
    """Base exception for workflow errors rendered to API clients."""

    status_code: int = 500
    kind: str = "InternalServerError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MissingInput(EchoMindError):
    """Raised when the audio sample or target phrase is absent."""

    status_code = 400
    kind = "MissingInput"


class InvalidAudio(EchoMindError):
    """Raised when an uploaded audio file has the wrong type or size."""

    status_code = 400
    kind = "InvalidAudio"


class NoVoiceSample(EchoMindError):
    """Raised when correction needs a voice clone but none exists or can be created."""

    status_code = 400
    kind = "NoVoiceSample"

    def __init__(self, message: str = "No voice clone available. Please provide an audio sample."):
        super().__init__(message)


class UserNotFound(EchoMindError):
    """Raised when the user record does not exist."""

    status_code = 404
    kind = "UserNotFound"

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found", {"user_id": user_id})


class QuotaExceeded(EchoMindError):
    """Raised when the daily voice clone limit has been reached."""

    status_code = 429
    kind = "QuotaExceeded"

    def __init__(self, daily_limit: int):
        self.daily_limit = daily_limit
        super().__init__(
            f"Daily voice clone limit ({daily_limit}) reached. Try again tomorrow!",
            {"daily_limit": daily_limit, "remaining": 0}
        )


class PersistenceFailure(EchoMindError):
    """Raised when a quota or profile write fails."""

    status_code = 500
    kind = "PersistenceFailure"
