"""In-memory repositories for local demo mode and tests."""

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional

from echomind.clients.repositories import (
    ProgressRepository,
    RepositoryError,
    UserRepository
)
from echomind.models.internal_models import PracticeRecord, UserRecord

logger = logging.getLogger(__name__)


class InMemoryUserRepository(UserRepository):
    """
    Dict-backed user store guarded by an asyncio lock.

    With ``auto_create`` enabled, unknown user ids get a fresh record on first
    access, which lets the demo run without provisioning users.
    """

    def __init__(self, users: Optional[Iterable[UserRecord]] = None, auto_create: bool = False):
        self._users: Dict[str, UserRecord] = {user.id: replace(user) for user in users or []}
        self.auto_create = auto_create
        self._lock = asyncio.Lock()

    def _lookup(self, user_id: str) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        if user is None and self.auto_create:
            user = UserRecord(id=user_id)
            self._users[user_id] = user
            logger.info(f"Created in-memory user {user_id}")
        return user

    def _require(self, user_id: str) -> UserRecord:
        user = self._lookup(user_id)
        if user is None:
            raise RepositoryError(f"User {user_id} not found")
        return user

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        async with self._lock:
            user = self._lookup(user_id)
            return replace(user) if user else None

    async def set_voice_clone_id(self, user_id: str, voice_clone_id: Optional[str]) -> None:
        async with self._lock:
            self._require(user_id).voice_clone_id = voice_clone_id

    async def consume_voice_quota(self, user_id: str, today: date, daily_limit: int) -> Optional[int]:
        async with self._lock:
            user = self._require(user_id)
            usage = user.daily_voice_usage if user.last_voice_usage_date == today else 0
            if usage >= daily_limit:
                return None

            user.daily_voice_usage = usage + 1
            user.last_voice_usage_date = today
            return user.daily_voice_usage

    async def add_points(self, user_id: str, points: int) -> int:
        async with self._lock:
            user = self._require(user_id)
            user.points += points
            return user.points


class InMemoryProgressRepository(ProgressRepository):
    """List-backed progress log."""

    def __init__(self):
        self.records: List[PracticeRecord] = []
        self._lock = asyncio.Lock()

    async def record_practice(self, record: PracticeRecord) -> PracticeRecord:
        async with self._lock:
            record.id = str(uuid.uuid4())
            self.records.append(record)
        return record
