"""
Tests for the pronunciation workflow orchestrator.
"""

from unittest.mock import AsyncMock

import pytest

from echomind.clients.memory_store import InMemoryUserRepository
from echomind.clients.repositories import RepositoryError
from echomind.config import Settings
from echomind.models.internal_models import (
    AudioSample,
    PhoneticEntry,
    ProviderError,
    ProviderResult,
    TranscriptSource,
    UserRecord,
    Verdict
)
from echomind.services.exceptions import MissingInput, NoVoiceSample, QuotaExceeded
from echomind.services.pronunciation_service import (
    CLONE_UNAVAILABLE_MESSAGE,
    CORRECTED_FEEDBACK,
    build_pronunciation_service
)

from tests.helpers import TODAY, YESTERDAY


def failure(provider, operation):
    return ProviderResult.failure(ProviderError(provider=provider, operation=operation, message="API error: 503"))


class TestAnalyzeAndCorrect:
    """Test cases for the sentence analyze-and-correct workflow."""

    @pytest.mark.asyncio
    async def test_correct_attempt_needs_no_audio(self, service, deepgram, elevenlabs, users, sample_audio):
        deepgram.transcribe.return_value = ProviderResult.success("hello")

        outcome = await service.analyze_and_correct("user-1", "Hello", sample_audio)

        assert outcome.verdict is Verdict.CORRECT
        assert outcome.similarity_score == 100
        assert outcome.corrected_audio is None
        assert outcome.remaining_quota == 5
        elevenlabs.clone_voice.assert_not_awaited()
        assert (await users.get_user("user-1")).daily_voice_usage == 0

    @pytest.mark.asyncio
    async def test_incorrect_with_clone_unavailable(self, service, deepgram, elevenlabs, users, sample_audio):
        deepgram.transcribe.return_value = ProviderResult.success("persistence")
        elevenlabs.clone_voice.return_value = failure("elevenlabs", "clone_voice")

        outcome = await service.analyze_and_correct("user-1", "Perseverance", sample_audio)

        assert outcome.verdict is Verdict.INCORRECT
        assert 0 <= outcome.similarity_score <= 99
        assert outcome.corrected_audio is None
        assert outcome.correction_error is not None
        assert outcome.remaining_quota == 5
        assert (await users.get_user("user-1")).daily_voice_usage == 0

    @pytest.mark.asyncio
    async def test_incorrect_with_correction_spends_quota(self, service, deepgram, users, sample_audio):
        deepgram.transcribe.return_value = ProviderResult.success("the weather")

        outcome = await service.analyze_and_correct("user-1", "The weather is nice.", sample_audio)

        assert outcome.verdict is Verdict.INCORRECT
        assert outcome.similarity_score == 50
        assert outcome.corrected_audio.audio == b"ID3-corrected-audio"
        assert outcome.feedback == CORRECTED_FEEDBACK
        assert outcome.remaining_quota == 4

        stored = await users.get_user("user-1")
        assert stored.daily_voice_usage == 1
        assert stored.last_voice_usage_date == TODAY
        assert stored.voice_clone_id is None

    @pytest.mark.asyncio
    async def test_sixth_correction_is_rejected(self, service, deepgram, users, sample_audio):
        deepgram.transcribe.return_value = ProviderResult.success("wrong words")

        for _ in range(5):
            await service.analyze_and_correct("user-1", "Hello there", sample_audio)

        with pytest.raises(QuotaExceeded) as exc_info:
            await service.analyze_and_correct("user-1", "Hello there", sample_audio)

        assert exc_info.value.daily_limit == 5
        assert (await users.get_user("user-1")).daily_voice_usage == 5

    @pytest.mark.asyncio
    async def test_quota_checked_before_transcription(self, service, deepgram, sample_audio):
        await service.users.consume_voice_quota("user-1", TODAY, 1)
        service.quota.daily_limit = 1

        with pytest.raises(QuotaExceeded):
            await service.analyze_and_correct("user-1", "Hello", sample_audio)

        deepgram.transcribe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollover_grants_fresh_attempt(self, service, deepgram, sample_audio):
        service.quota.users = InMemoryUserRepository([
            UserRecord(id="user-1", daily_voice_usage=5, last_voice_usage_date=YESTERDAY)
        ])
        deepgram.transcribe.return_value = ProviderResult.success("nothing alike")

        outcome = await service.analyze_and_correct("user-1", "Hello", sample_audio)

        stored = await service.users.get_user("user-1")
        assert outcome.remaining_quota == 4
        assert stored.daily_voice_usage == 1
        assert stored.last_voice_usage_date == TODAY

    @pytest.mark.asyncio
    async def test_transcription_outage_degrades_to_offline(self, service, deepgram, elevenlabs, users, sample_audio):
        deepgram.transcribe.return_value = failure("deepgram", "transcribe")

        outcome = await service.analyze_and_correct("user-1", "The weather is nice.", sample_audio)

        assert outcome.source is TranscriptSource.OFFLINE
        assert outcome.transcript == "the weather is nice."
        assert outcome.offline_analysis.syllables
        assert outcome.similarity_score == outcome.offline_analysis.similarity
        elevenlabs.clone_voice.assert_not_awaited()
        assert (await users.get_user("user-1")).daily_voice_usage == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("phrase,audio", [
        ("Hello", None),
        ("", AudioSample(data=b"RIFF....WAVE", mime_type="audio/wav")),
        ("   ", AudioSample(data=b"RIFF....WAVE", mime_type="audio/wav")),
        ("Hello", AudioSample(data=b"", mime_type="audio/wav")),
    ])
    async def test_missing_input_rejected_before_io(self, service, deepgram, phrase, audio):
        service.quota.users = AsyncMock()

        with pytest.raises(MissingInput):
            await service.analyze_and_correct("user-1", phrase, audio)

        service.quota.users.get_user.assert_not_awaited()
        deepgram.transcribe.assert_not_awaited()


class TestAssessWord:
    """Test cases for single-word assessment."""

    @pytest.mark.asyncio
    async def test_exact_word(self, service, deepgram, users, progress, sample_audio):
        deepgram.transcribe.return_value = ProviderResult.success("Hello")

        assessment = await service.assess_word("user-1", "hello", sample_audio)

        assert assessment.score == 100
        assert not assessment.needs_correction
        assert assessment.feedback == "Perfect pronunciation! Excellent job!"
        assert progress.records[0].points_earned == 10
        assert progress.records[0].details == {"word": "hello", "needsCorrection": False}
        assert (await users.get_user("user-1")).points == 10

    @pytest.mark.asyncio
    async def test_mispronounced_word(self, service, deepgram, sample_audio):
        deepgram.transcribe.return_value = ProviderResult.success("persistence")

        assessment = await service.assess_word("user-1", "perseverance", sample_audio)

        assert assessment.needs_correction
        assert assessment.score < 85

    @pytest.mark.asyncio
    async def test_offline_demo_score(self, service, deepgram, sample_audio):
        deepgram.transcribe.return_value = failure("deepgram", "transcribe")

        assessment = await service.assess_word("user-1", "hello", sample_audio)

        assert 60 <= assessment.score <= 94
        assert assessment.source is TranscriptSource.OFFLINE
        assert assessment.needs_correction == (assessment.score < 85)

    @pytest.mark.asyncio
    async def test_progress_failure_is_not_raised(self, service, deepgram, sample_audio):
        service.progress = AsyncMock()
        service.progress.record_practice.side_effect = RepositoryError("insert failed")

        assessment = await service.assess_word("user-1", "hello", sample_audio)

        assert assessment.score == 100

    @pytest.mark.asyncio
    async def test_missing_text(self, service, sample_audio):
        with pytest.raises(MissingInput):
            await service.assess_word("user-1", None, sample_audio)


class TestCloneCorrect:
    """Test cases for persisted-clone correction."""

    @pytest.mark.asyncio
    async def test_no_clone_and_no_sample(self, service):
        with pytest.raises(NoVoiceSample):
            await service.clone_correct("user-1", "Hello", None)

    @pytest.mark.asyncio
    async def test_stored_clone_without_voice_provider(self, service, users):
        await users.set_voice_clone_id("user-1", "voice-1")
        service.synthesizer.resolver.client = None

        result = await service.clone_correct("user-1", "Hello", None)

        assert result.audio is None
        assert result.message == CLONE_UNAVAILABLE_MESSAGE
        assert result.usage_remaining == 5
        assert (await users.get_user("user-1")).daily_voice_usage == 0

    @pytest.mark.asyncio
    async def test_first_use_creates_clone_and_spends_quota(self, service, elevenlabs, users, sample_audio):
        result = await service.clone_correct("user-1", "Hello", sample_audio)

        assert result.audio.audio == b"ID3-corrected-audio"
        assert result.usage_remaining == 4
        stored = await users.get_user("user-1")
        assert stored.voice_clone_id == "voice-123"
        assert stored.daily_voice_usage == 1

        again = await service.clone_correct("user-1", "Goodbye", None)

        assert again.usage_remaining == 3
        elevenlabs.clone_voice.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_synthesis_failure_is_partial_success(self, service, elevenlabs, users, sample_audio):
        elevenlabs.text_to_speech.return_value = failure("elevenlabs", "text_to_speech")

        result = await service.clone_correct("user-1", "Hello", sample_audio)

        assert result.audio is None
        assert result.message == CLONE_UNAVAILABLE_MESSAGE
        assert result.usage_remaining == 5
        assert (await users.get_user("user-1")).daily_voice_usage == 0

    @pytest.mark.asyncio
    async def test_quota_exhausted(self, service, sample_audio):
        for _ in range(5):
            await service.clone_correct("user-1", "Hello", sample_audio)

        with pytest.raises(QuotaExceeded):
            await service.clone_correct("user-1", "Hello", sample_audio)

    @pytest.mark.asyncio
    async def test_missing_text(self, service, sample_audio):
        with pytest.raises(MissingInput, match="Text is required"):
            await service.clone_correct("user-1", "", sample_audio)


class TestVoiceManagement:
    """Test cases for voice status, deletion and phonetics."""

    @pytest.mark.asyncio
    async def test_status_then_delete(self, service, elevenlabs, sample_audio):
        await service.clone_correct("user-1", "Hello", sample_audio)

        status = await service.voice_status("user-1")
        assert status.has_voice_clone
        assert status.remaining == 4

        assert await service.delete_voice_clone("user-1") is True
        elevenlabs.delete_voice.assert_awaited_once_with("voice-123")
        assert not (await service.voice_status("user-1")).has_voice_clone

    @pytest.mark.asyncio
    async def test_phonetics_lookup(self, service):
        service.dictionary = AsyncMock()
        service.dictionary.lookup.return_value = ProviderResult.success(
            PhoneticEntry(word="hello", phonetic="/həˈloʊ/")
        )

        entry = await service.phonetics("hello")

        assert entry.phonetic == "/həˈloʊ/"

    @pytest.mark.asyncio
    async def test_phonetics_failure_returns_empty_entry(self, service):
        service.dictionary = AsyncMock()
        service.dictionary.lookup.return_value = failure("dictionaryapi", "lookup")

        entry = await service.phonetics("hello")

        assert entry == PhoneticEntry(word="hello")


class TestBuildPronunciationService:
    """Test cases for wiring the service from settings."""

    def test_demo_mode_without_keys(self):
        config = Settings(_env_file=None, deepgram_api_key=None, elevenlabs_api_key=None, user_store="memory")

        service = build_pronunciation_service(config)

        assert not service.transcription.configured
        assert service.synthesizer.client is None
        assert service.quota.daily_limit == 5
        assert service.sentence_policy.threshold == 0.80
        assert service.word_policy.threshold == 0.85

    def test_providers_share_uniform_timeout(self):
        config = Settings(
            _env_file=None,
            deepgram_api_key="dg",
            elevenlabs_api_key="xi",
            provider_timeout_seconds=12.5,
            daily_clone_limit=3
        )

        service = build_pronunciation_service(config)

        assert service.transcription.client.timeout == 12.5
        assert service.synthesizer.client.timeout == 12.5
        assert service.dictionary.timeout == 12.5
        assert service.quota.daily_limit == 3
        assert service.synthesizer.persisted_settings.stability == 0.7
        assert service.synthesizer.ephemeral_settings.similarity_boost == 0.75

    def test_invalid_threshold_rejected(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, word_overlap_threshold=1.5)
