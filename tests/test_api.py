"""
Tests for the HTTP surface.
"""

import base64
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from echomind.api.dependencies import get_service
from echomind.clients.repositories import RepositoryError
from echomind.main import app
from echomind.models.internal_models import ProviderError, ProviderResult

from tests.helpers import WAV_BYTES

USER = {"X-User-ID": "user-1"}
CORRECTED_AUDIO_B64 = base64.b64encode(b"ID3-corrected-audio").decode("ascii")


def audio_file(data=WAV_BYTES, content_type="audio/wav"):
    return {"audio": ("attempt.wav", data, content_type)}


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestPracticeEndpoints:
    """Test cases for /api/practice."""

    def test_requires_user_header(self, client):
        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Hello"},
            files=audio_file()
        )
        assert response.status_code == 401

    def test_correct_attempt(self, client, deepgram):
        deepgram.transcribe.return_value = ProviderResult.success("hello")

        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Hello"},
            files=audio_file(),
            headers=USER
        )

        assert response.status_code == 200
        body = response.json()
        assert body["verdict"] == "Correct"
        assert body["similarityScore"] == 100
        assert body["correctedAudioBase64"] is None
        assert body["remainingQuota"] == 5
        assert body["dailyLimit"] == 5
        assert body["source"] == "provider"

    def test_incorrect_attempt_returns_audio(self, client, deepgram):
        deepgram.transcribe.return_value = ProviderResult.success("the weather")

        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"sentence": "The weather is nice."},
            files=audio_file(),
            headers=USER
        )

        body = response.json()
        assert response.status_code == 200
        assert body["verdict"] == "Incorrect"
        assert body["correctedAudioBase64"] == CORRECTED_AUDIO_B64
        assert body["correctedAudioContentType"] == "audio/mpeg"
        assert body["remainingQuota"] == 4

    def test_offline_mode_includes_word_analysis(self, client, deepgram):
        deepgram.transcribe.return_value = ProviderResult.failure(
            ProviderError(provider="deepgram", operation="transcribe", message="API error: 503")
        )

        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Perseverance"},
            files=audio_file(),
            headers=USER
        )

        body = response.json()
        assert response.status_code == 200
        assert body["source"] == "offline"
        assert body["transcript"] == "perseverance"
        assert [item["syllable"] for item in body["wordAnalysis"]] == ["pers", "ev", "er", "anc", "e"]
        assert body["commonMistakes"]

    def test_missing_audio(self, client):
        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Hello"},
            headers={**USER, "X-Request-ID": "req-missing"}
        )

        body = response.json()
        assert response.status_code == 400
        assert body["error"] == "MissingInput"
        assert body["correlation_id"] == "req-missing"
        assert response.headers["X-Request-ID"] == "req-missing"

    def test_non_audio_upload(self, client):
        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Hello"},
            files=audio_file(b"just some text, not a recording", "text/plain"),
            headers=USER
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidAudio"

    def test_quota_exceeded(self, client, service, deepgram):
        deepgram.transcribe.return_value = ProviderResult.success("wrong")
        service.quota.daily_limit = 0

        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Hello"},
            files=audio_file(),
            headers=USER
        )

        body = response.json()
        assert response.status_code == 429
        assert body["error"] == "QuotaExceeded"
        assert body["details"] == {"daily_limit": 0, "remaining": 0}

    def test_persistence_failure_hides_details(self, client, service):
        service.quota.users = AsyncMock()
        service.quota.users.get_user.side_effect = RepositoryError("password=hunter2 connection refused")

        response = client.post(
            "/api/practice/analyze-and-correct",
            data={"targetPhrase": "Hello"},
            files=audio_file(),
            headers=USER
        )

        body = response.json()
        assert response.status_code == 500
        assert body["error"] == "PersistenceFailure"
        assert "hunter2" not in response.text
        assert body["details"] == {}

    def test_quota_snapshot(self, client):
        response = client.get("/api/practice/quota", headers=USER)

        assert response.status_code == 200
        assert response.json() == {"hasVoiceClone": False, "remaining": 5, "dailyLimit": 5}


class TestPronunciationEndpoints:
    """Test cases for /api/pronunciation."""

    def test_analyze_word(self, client, deepgram):
        deepgram.transcribe.return_value = ProviderResult.success("hello")

        response = client.post(
            "/api/pronunciation/analyze",
            data={"text": "hello"},
            files=audio_file(),
            headers=USER
        )

        body = response.json()
        assert response.status_code == 200
        assert body["score"] == 100
        assert body["needsCorrection"] is False
        assert body["expectedText"] == "hello"

    def test_clone_correct_without_sample(self, client):
        response = client.post("/api/pronunciation/clone-correct", data={"text": "Hello"}, headers=USER)

        assert response.status_code == 400
        assert response.json()["error"] == "NoVoiceSample"

    def test_clone_correct_then_status_then_delete(self, client):
        response = client.post(
            "/api/pronunciation/clone-correct",
            data={"text": "Hello"},
            files=audio_file(),
            headers=USER
        )
        body = response.json()
        assert response.status_code == 200
        assert body["audio"] == CORRECTED_AUDIO_B64
        assert body["usageRemaining"] == 4

        status = client.get("/api/pronunciation/voice-status", headers=USER).json()
        assert status == {"hasVoiceClone": True, "remaining": 4, "dailyLimit": 5}

        deleted = client.delete("/api/pronunciation/voice-clone", headers=USER).json()
        assert deleted["deleted"] is True

        status = client.get("/api/pronunciation/voice-status", headers=USER).json()
        assert status["hasVoiceClone"] is False

    def test_clone_correct_without_voice_provider(self, client, service, users):
        service.synthesizer.resolver.client = None
        users._users["user-1"].voice_clone_id = "voice-1"

        response = client.post("/api/pronunciation/clone-correct", data={"text": "Hello"}, headers=USER)

        assert response.status_code == 200
        assert response.json()["audio"] is None

    def test_phonetics_without_dictionary(self, client):
        response = client.get("/api/pronunciation/phonetics/hello")

        assert response.status_code == 200
        assert response.json() == {"word": "hello", "phonetic": "", "audioUrl": "", "meanings": []}


class TestServiceEndpoints:
    """Test cases for health and metrics."""

    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_service_health_reports_configured_providers(self, client):
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["components"] == {"user_store": "healthy", "transcription": "healthy", "voice": "healthy"}

    def test_service_health_degraded_when_store_unreachable(self, client, users):
        users.health_check = AsyncMock(return_value=False)

        body = client.get("/api/v1/health").json()

        assert body["status"] == "degraded"
        assert body["components"]["user_store"] == "unhealthy"

    def test_service_health_degraded_without_voice_provider(self, client, service):
        service.synthesizer.resolver.client = None

        body = client.get("/api/v1/health").json()

        assert body["status"] == "degraded"
        assert body["components"]["voice"] == "unconfigured"

    def test_metrics(self, client):
        client.get("/healthz")

        body = client.get("/metrics").json()

        assert body["metrics"]["total_requests"] >= 1
