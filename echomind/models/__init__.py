"""Data models for the EchoMind pronunciation service."""

from .api_models import (
    AnalyzeAndCorrectResponse,
    ClonedPronunciationResponse,
    DeleteVoiceCloneResponse,
    ErrorResponse,
    HealthResponse,
    PhoneticsResponse,
    SyllableFeedback,
    VoiceStatusResponse,
    WordAssessmentResponse
)
from .internal_models import (
    AudioSample,
    ClonedPronunciation,
    CorrectedAudio,
    CorrectionOutcome,
    OfflineAnalysis,
    PhoneticEntry,
    PracticeRecord,
    ProviderError,
    ProviderResult,
    SimilarityResult,
    SyllableAnalysis,
    TranscriptionOutcome,
    TranscriptSource,
    UserRecord,
    Verdict,
    VoiceQuota,
    VoiceStatus,
    WordAssessment
)

__all__ = [
    "AnalyzeAndCorrectResponse",
    "ClonedPronunciationResponse",
    "DeleteVoiceCloneResponse",
    "ErrorResponse",
    "HealthResponse",
    "PhoneticsResponse",
    "SyllableFeedback",
    "VoiceStatusResponse",
    "WordAssessmentResponse",
    "AudioSample",
    "ClonedPronunciation",
    "CorrectedAudio",
    "CorrectionOutcome",
    "OfflineAnalysis",
    "PhoneticEntry",
    "PracticeRecord",
    "ProviderError",
    "ProviderResult",
    "SimilarityResult",
    "SyllableAnalysis",
    "TranscriptionOutcome",
    "TranscriptSource",
    "UserRecord",
    "Verdict",
    "VoiceQuota",
    "VoiceStatus",
    "WordAssessment"
]
