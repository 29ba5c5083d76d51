"""Supabase client for user and progress persistence."""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional

from supabase import create_client, Client
from postgrest.exceptions import APIError

from echomind.clients.repositories import (
    ProgressRepository,
    RepositoryError,
    UserRepository
)
from echomind.models.internal_models import PracticeRecord, UserRecord

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, voice_clone_id, daily_voice_usage, last_voice_usage_date, level, points"


def _parse_date(value: Any) -> Optional[date]:
    """Accept ISO dates or timestamps as stored by Postgres."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def user_from_row(row: Dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(row["id"]),
        voice_clone_id=row.get("voice_clone_id"),
        daily_voice_usage=row.get("daily_voice_usage") or 0,
        last_voice_usage_date=_parse_date(row.get("last_voice_usage_date")),
        level=row.get("level"),
        points=row.get("points") or 0,
    )


class SupabaseClient:
    """Lazily created Supabase client."""

    def __init__(self, url: Optional[str], key: Optional[str]):
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase user store")

        self._client: Optional[Client] = None
        self._url = url
        self._key = key

    @property
    def client(self) -> Client:
        """Get or create Supabase client instance."""
        if self._client is None:
            self._client = create_client(self._url, self._key)
        return self._client

    async def health_check(self) -> bool:
        """Check if database connection is healthy."""
        try:
            self.client.table("users").select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


class SupabaseUserRepository(UserRepository):
    """User repository backed by the ``users`` table."""

    def __init__(self, supabase_client: SupabaseClient, max_cas_attempts: int = 5):
        self.client = supabase_client
        self.max_cas_attempts = max_cas_attempts

    def _table(self):
        return self.client.client.table("users")

    async def health_check(self) -> bool:
        return await self.client.health_check()

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        try:
            result = self._table().select(USER_COLUMNS).eq("id", user_id).execute()
        except APIError as e:
            logger.error(f"Database error retrieving user {user_id}: {e}")
            raise RepositoryError(f"Failed to load user {user_id}") from e

        if not result.data:
            return None
        return user_from_row(result.data[0])

    async def set_voice_clone_id(self, user_id: str, voice_clone_id: Optional[str]) -> None:
        try:
            result = (
                self._table()
                .update({"voice_clone_id": voice_clone_id})
                .eq("id", user_id)
                .execute()
            )
        except APIError as e:
            logger.error(f"Database error updating voice clone for user {user_id}: {e}")
            raise RepositoryError(f"Failed to update voice clone for user {user_id}") from e

        if not result.data:
            raise RepositoryError(f"User {user_id} not found for voice clone update")

        logger.info(f"Updated voice clone id for user {user_id}")

    async def consume_voice_quota(self, user_id: str, today: date, daily_limit: int) -> Optional[int]:
        """
        Spend one quota unit with a compare-and-swap UPDATE.

        The UPDATE is filtered on the usage and date read just before it, so a
        concurrent writer makes it match zero rows and the read is retried.
        """
        for attempt in range(self.max_cas_attempts):
            user = await self.get_user(user_id)
            if user is None:
                raise RepositoryError(f"User {user_id} not found for quota update")

            usage = user.daily_voice_usage if user.last_voice_usage_date == today else 0
            if usage >= daily_limit:
                return None

            new_usage = usage + 1
            query = (
                self._table()
                .update({
                    "daily_voice_usage": new_usage,
                    "last_voice_usage_date": today.isoformat()
                })
                .eq("id", user_id)
                .eq("daily_voice_usage", user.daily_voice_usage)
            )
            if user.last_voice_usage_date is None:
                query = query.is_("last_voice_usage_date", "null")
            else:
                query = query.eq("last_voice_usage_date", user.last_voice_usage_date.isoformat())

            try:
                result = query.execute()
            except APIError as e:
                logger.error(f"Database error consuming quota for user {user_id}: {e}")
                raise RepositoryError(f"Failed to update quota for user {user_id}") from e

            if result.data:
                return new_usage

            logger.warning(
                f"Quota update for user {user_id} lost a race "
                f"(attempt {attempt + 1}/{self.max_cas_attempts}), retrying"
            )
            await asyncio.sleep(0)

        raise RepositoryError(f"Quota update for user {user_id} kept conflicting")

    async def add_points(self, user_id: str, points: int) -> int:
        user = await self.get_user(user_id)
        if user is None:
            raise RepositoryError(f"User {user_id} not found for points update")

        total = user.points + points
        try:
            self._table().update({"points": total}).eq("id", user_id).execute()
        except APIError as e:
            logger.error(f"Database error adding points for user {user_id}: {e}")
            raise RepositoryError(f"Failed to add points for user {user_id}") from e

        return total


class SupabaseProgressRepository(ProgressRepository):
    """Progress repository backed by the ``progress`` table."""

    def __init__(self, supabase_client: SupabaseClient):
        self.client = supabase_client

    async def record_practice(self, record: PracticeRecord) -> PracticeRecord:
        row = {
            "user_id": record.user_id,
            "type": record.type,
            "score": record.score,
            "points_earned": record.points_earned,
            "details": record.details,
            "completed_at": record.completed_at.isoformat()
        }

        try:
            result = self.client.client.table("progress").insert(row).execute()
        except APIError as e:
            logger.error(f"Database error recording practice for user {record.user_id}: {e}")
            raise RepositoryError(f"Failed to record practice for user {record.user_id}") from e

        if not result.data:
            raise RepositoryError("Failed to record practice")

        record.id = result.data[0].get("id")
        logger.info(f"Recorded practice {record.id} for user {record.user_id}")
        return record


class DatabaseManager:
    """Groups the Supabase-backed repositories around one client."""

    def __init__(self, url: Optional[str], key: Optional[str]):
        self.client = SupabaseClient(url, key)
        self.users = SupabaseUserRepository(self.client)
        self.progress = SupabaseProgressRepository(self.client)
