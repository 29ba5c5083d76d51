"""
Shared fixtures for the pronunciation service tests.
"""

import random
from unittest.mock import AsyncMock

import pytest

from echomind.clients.elevenlabs_client import VoiceSettings
from echomind.clients.memory_store import InMemoryProgressRepository, InMemoryUserRepository
from echomind.models.internal_models import AudioSample, ProviderResult, UserRecord
from echomind.services.pronunciation_service import PronunciationService
from echomind.services.quota_service import QuotaService
from echomind.services.syllables import OfflineAnalyzer
from echomind.services.transcription_service import TranscriptionService
from echomind.services.voice_clone_service import CorrectionSynthesizer, VoiceCloneResolver

from tests.helpers import TODAY, WAV_BYTES


@pytest.fixture
def sample_audio():
    return AudioSample(data=WAV_BYTES, mime_type="audio/wav")


@pytest.fixture
def users():
    return InMemoryUserRepository([UserRecord(id="user-1")])


@pytest.fixture
def progress():
    return InMemoryProgressRepository()


@pytest.fixture
def quota(users):
    return QuotaService(users, daily_limit=5, today=lambda: TODAY)


@pytest.fixture
def deepgram():
    """Transcription client double; tests set ``transcribe.return_value``."""
    client = AsyncMock()
    client.transcribe.return_value = ProviderResult.success("hello")
    return client


@pytest.fixture
def elevenlabs():
    """Voice provider double that succeeds by default."""
    client = AsyncMock()
    client.clone_voice.return_value = ProviderResult.success("voice-123")
    client.text_to_speech.return_value = ProviderResult.success(b"ID3-corrected-audio")
    client.delete_voice.return_value = ProviderResult.success(True)
    return client


@pytest.fixture
def analyzer():
    return OfflineAnalyzer(rng=random.Random(7))


@pytest.fixture
def resolver(elevenlabs, users):
    return VoiceCloneResolver(elevenlabs, users)


@pytest.fixture
def synthesizer(resolver):
    return CorrectionSynthesizer(
        resolver=resolver,
        persisted_settings=VoiceSettings(stability=0.7, similarity_boost=0.8),
        ephemeral_settings=VoiceSettings(stability=0.75, similarity_boost=0.75),
    )


@pytest.fixture
def service(quota, deepgram, analyzer, synthesizer, progress):
    return PronunciationService(
        quota=quota,
        transcription=TranscriptionService(deepgram, analyzer),
        synthesizer=synthesizer,
        progress=progress,
    )
