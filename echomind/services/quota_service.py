"""
Daily voice-clone quota enforcement.

Usage resets lazily: a stored counter whose date is not today counts as 0.
Checking never writes; spending goes through the repository's atomic
conditional increment so concurrent requests cannot exceed the limit.
"""

import logging
from datetime import date
from typing import Callable, Optional

from echomind.clients.repositories import RepositoryError, UserRepository
from echomind.models.internal_models import UserRecord, VoiceQuota, VoiceStatus
from echomind.services.exceptions import PersistenceFailure, QuotaExceeded, UserNotFound

logger = logging.getLogger(__name__)


class QuotaService:
    """Reads and spends a user's daily voice-clone allowance."""

    def __init__(
        self,
        users: UserRepository,
        daily_limit: int = 5,
        today: Optional[Callable[[], date]] = None
    ):
        self.users = users
        self.daily_limit = daily_limit
        self._today = today or date.today

    def today(self) -> date:
        return self._today()

    async def load_user(self, user_id: str) -> UserRecord:
        """Fetch the user record or raise UserNotFound / PersistenceFailure."""
        try:
            user = await self.users.get_user(user_id)
        except RepositoryError as e:
            raise PersistenceFailure("Failed to load user profile", {"user_id": user_id}) from e

        if user is None:
            raise UserNotFound(user_id)
        return user

    def quota_for(self, user: UserRecord) -> VoiceQuota:
        return VoiceQuota.for_user(user, self.daily_limit)

    def remaining(self, user: UserRecord) -> int:
        return self.quota_for(user).remaining(self.today())

    def check(self, user: UserRecord) -> int:
        """
        Ensure ``user`` still has quota for today.

        Returns:
            Remaining uses for today

        Raises:
            QuotaExceeded: When effective usage has reached the daily limit
        """
        quota = self.quota_for(user)
        if quota.is_exhausted(self.today()):
            logger.info(f"Voice quota exhausted for user {user.id}")
            raise QuotaExceeded(self.daily_limit)
        return quota.remaining(self.today())

    async def consume(self, user_id: str) -> int:
        """
        Spend one unit of today's quota.

        Returns:
            Remaining uses after the increment

        Raises:
            QuotaExceeded: When the ceiling was reached concurrently
            PersistenceFailure: When the write fails
        """
        try:
            usage = await self.users.consume_voice_quota(user_id, self.today(), self.daily_limit)
        except RepositoryError as e:
            logger.error(f"Failed to record voice usage for user {user_id}: {e}")
            raise PersistenceFailure("Failed to record voice usage", {"user_id": user_id}) from e

        if usage is None:
            raise QuotaExceeded(self.daily_limit)

        remaining = max(0, self.daily_limit - usage)
        logger.info(f"User {user_id} voice usage {usage}/{self.daily_limit}")
        return remaining

    async def status(self, user_id: str) -> VoiceStatus:
        user = await self.load_user(user_id)
        return VoiceStatus(
            has_voice_clone=user.has_voice_clone,
            remaining=self.remaining(user),
            daily_limit=self.daily_limit,
        )
