"""
Tests for the daily voice-clone quota gate.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from echomind.clients.memory_store import InMemoryUserRepository
from echomind.clients.repositories import RepositoryError
from echomind.models.internal_models import UserRecord, VoiceQuota
from echomind.services.exceptions import PersistenceFailure, QuotaExceeded, UserNotFound
from echomind.services.quota_service import QuotaService

from tests.helpers import TODAY, YESTERDAY


def make_service(*records, limit=5):
    users = InMemoryUserRepository(records)
    return QuotaService(users, daily_limit=limit, today=lambda: TODAY), users


class TestVoiceQuota:
    """Test cases for the lazy-reset quota value."""

    def test_stale_date_counts_as_zero(self):
        quota = VoiceQuota("u", usage_count=5, last_reset_date=YESTERDAY, daily_limit=5)

        assert quota.effective_usage(TODAY) == 0
        assert quota.remaining(TODAY) == 5
        assert not quota.is_exhausted(TODAY)

    def test_never_used(self):
        quota = VoiceQuota("u", usage_count=0, last_reset_date=None, daily_limit=5)
        assert quota.remaining(TODAY) == 5

    def test_exhausted_today(self):
        quota = VoiceQuota("u", usage_count=5, last_reset_date=TODAY, daily_limit=5)

        assert quota.is_exhausted(TODAY)
        assert quota.remaining(TODAY) == 0

    def test_negative_usage_rejected(self):
        with pytest.raises(ValueError):
            UserRecord(id="u", daily_voice_usage=-1)


class TestQuotaService:
    """Test cases for QuotaService."""

    @pytest.mark.asyncio
    async def test_check_reports_remaining(self):
        service, _ = make_service(UserRecord(id="u1", daily_voice_usage=2, last_voice_usage_date=TODAY))

        user = await service.load_user("u1")

        assert service.check(user) == 3

    @pytest.mark.asyncio
    async def test_check_rejects_at_limit(self):
        service, _ = make_service(UserRecord(id="u1", daily_voice_usage=5, last_voice_usage_date=TODAY))
        user = await service.load_user("u1")

        with pytest.raises(QuotaExceeded) as exc_info:
            service.check(user)

        assert exc_info.value.daily_limit == 5
        assert exc_info.value.details == {"daily_limit": 5, "remaining": 0}
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_check_never_writes(self):
        service, users = make_service(UserRecord(id="u1", daily_voice_usage=5, last_voice_usage_date=YESTERDAY))
        user = await service.load_user("u1")

        assert service.check(user) == 5

        stored = await users.get_user("u1")
        assert stored.daily_voice_usage == 5
        assert stored.last_voice_usage_date == YESTERDAY

    @pytest.mark.asyncio
    async def test_rollover_resets_to_one(self):
        service, users = make_service(UserRecord(id="u1", daily_voice_usage=5, last_voice_usage_date=YESTERDAY))

        remaining = await service.consume("u1")

        stored = await users.get_user("u1")
        assert remaining == 4
        assert stored.daily_voice_usage == 1
        assert stored.last_voice_usage_date == TODAY

    @pytest.mark.asyncio
    async def test_sixth_use_rejected_without_increment(self):
        service, users = make_service(UserRecord(id="u1"))

        for expected_remaining in (4, 3, 2, 1, 0):
            assert await service.consume("u1") == expected_remaining

        with pytest.raises(QuotaExceeded):
            await service.consume("u1")

        stored = await users.get_user("u1")
        assert stored.daily_voice_usage == 5

    @pytest.mark.asyncio
    async def test_concurrent_consumers_cannot_exceed_limit(self):
        service, users = make_service(UserRecord(id="u1"))

        results = await asyncio.gather(
            *(service.consume("u1") for _ in range(12)),
            return_exceptions=True
        )

        granted = [r for r in results if isinstance(r, int)]
        rejected = [r for r in results if isinstance(r, QuotaExceeded)]
        assert len(granted) == 5
        assert len(rejected) == 7
        assert (await users.get_user("u1")).daily_voice_usage == 5

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        service, _ = make_service()

        with pytest.raises(UserNotFound):
            await service.load_user("ghost")

    @pytest.mark.asyncio
    async def test_load_failure_is_persistence_failure(self):
        users = AsyncMock()
        users.get_user.side_effect = RepositoryError("connection reset")
        service = QuotaService(users, today=lambda: TODAY)

        with pytest.raises(PersistenceFailure):
            await service.load_user("u1")

    @pytest.mark.asyncio
    async def test_consume_failure_is_persistence_failure(self):
        users = AsyncMock()
        users.consume_voice_quota.side_effect = RepositoryError("write failed")
        service = QuotaService(users, today=lambda: TODAY)

        with pytest.raises(PersistenceFailure) as exc_info:
            await service.consume("u1")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_consume_passes_today_and_limit(self):
        users = AsyncMock()
        users.consume_voice_quota.return_value = 2
        service = QuotaService(users, daily_limit=3, today=lambda: TODAY)

        assert await service.consume("u1") == 1
        users.consume_voice_quota.assert_awaited_once_with("u1", TODAY, 3)

    @pytest.mark.asyncio
    async def test_status(self):
        service, _ = make_service(UserRecord(
            id="u1",
            voice_clone_id="voice-1",
            daily_voice_usage=2,
            last_voice_usage_date=TODAY
        ))

        status = await service.status("u1")

        assert status.has_voice_clone
        assert status.remaining == 3
        assert status.daily_limit == 5

    @pytest.mark.asyncio
    async def test_zero_limit_always_rejects(self):
        service, _ = make_service(UserRecord(id="u1"), limit=0)
        user = await service.load_user("u1")

        with pytest.raises(QuotaExceeded):
            service.check(user)
