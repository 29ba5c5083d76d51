"""Storage interfaces for user records and practice progress."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from echomind.models.internal_models import PracticeRecord, UserRecord


class RepositoryError(Exception):
    """Raised by repository implementations when a read or write fails."""
    pass


class UserRepository(ABC):
    """Persistence of the user fields the pronunciation workflow touches."""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        """Return the user, or None when no such user exists."""

    @abstractmethod
    async def set_voice_clone_id(self, user_id: str, voice_clone_id: Optional[str]) -> None:
        """Store or clear the persisted voice clone id."""

    @abstractmethod
    async def consume_voice_quota(self, user_id: str, today: date, daily_limit: int) -> Optional[int]:
        """
        Atomically spend one unit of the daily voice quota.

        The counter is treated as 0 when its stored date is not ``today``.
        The increment only happens while the effective usage is below
        ``daily_limit``.

        Returns:
            The new usage count, or None when the ceiling was already reached
        """

    @abstractmethod
    async def add_points(self, user_id: str, points: int) -> int:
        """Add gamification points and return the new total."""

    async def health_check(self) -> bool:
        """Whether the backing store is reachable."""
        return True


class ProgressRepository(ABC):
    """Append-only log of practice attempts."""

    @abstractmethod
    async def record_practice(self, record: PracticeRecord) -> PracticeRecord:
        """Persist ``record`` and return it with its generated id."""
