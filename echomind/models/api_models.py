"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyllableFeedback(BaseModel):
    """One syllable of the offline breakdown."""

    syllable: str
    correct: bool
    phonetic: str
    tip: Optional[str] = None


class AnalyzeAndCorrectResponse(BaseModel):
    """Response model for the sentence analyze-and-correct endpoint."""

    verdict: str = Field(..., description="Correct or Incorrect")
    similarityScore: int = Field(..., ge=0, le=100, description="Similarity on a 0-100 scale")
    transcript: str = Field(..., description="Transcript of the recording, or the echoed target in offline mode")
    feedback: str
    correctedAudioBase64: Optional[str] = Field(None, description="Corrected pronunciation in the user's voice")
    correctedAudioContentType: Optional[str] = None
    remainingQuota: int = Field(..., ge=0)
    dailyLimit: int = Field(..., ge=0)
    source: str = Field(..., description="provider or offline")
    wordAnalysis: Optional[List[SyllableFeedback]] = None
    commonMistakes: Optional[List[str]] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "verdict": "Incorrect",
            "similarityScore": 60,
            "transcript": "the weather nice",
            "feedback": "Listen to the correct pronunciation in your own voice!",
            "correctedAudioBase64": "SUQzBAAAAAAA...",
            "correctedAudioContentType": "audio/mpeg",
            "remainingQuota": 4,
            "dailyLimit": 5,
            "source": "provider"
        }
    })


class WordAssessmentResponse(BaseModel):
    """Response model for single-word pronunciation analysis."""

    score: int = Field(..., ge=0, le=100)
    transcription: str
    expectedText: str
    needsCorrection: bool
    feedback: str
    source: str


class ClonedPronunciationResponse(BaseModel):
    """Response model for the clone-correct endpoint."""

    text: str
    audio: Optional[str] = Field(None, description="Base64-encoded audio, absent when correction is unavailable")
    contentType: Optional[str] = None
    usageRemaining: int = Field(..., ge=0)
    dailyLimit: int = Field(..., ge=0)
    message: str


class VoiceStatusResponse(BaseModel):
    """Response model for the voice-status endpoint."""

    hasVoiceClone: bool
    remaining: int = Field(..., ge=0)
    dailyLimit: int = Field(..., ge=0)

    model_config = ConfigDict(json_schema_extra={
        "example": {"hasVoiceClone": True, "remaining": 3, "dailyLimit": 5}
    })


class DeleteVoiceCloneResponse(BaseModel):
    """Response model for voice clone deletion."""

    deleted: bool
    message: str


class PhoneticsResponse(BaseModel):
    """Response model for phonetics lookup."""

    word: str
    phonetic: str = ""
    audioUrl: str = ""
    meanings: List[Dict[str, Any]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Service health status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field("1.0.0", description="Service version")
    components: Dict[str, str] = Field(default_factory=dict, description="Per-component status")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Stable machine-readable error kind")
    message: str = Field(..., description="Human-readable error message")
    details: Dict[str, Any] = Field(default_factory=dict)
    correlation_id: str = Field(..., description="Request correlation ID for tracing")
    timestamp: datetime = Field(..., description="Error timestamp")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "QuotaExceeded",
            "message": "Daily voice clone limit (5) reached. Try again tomorrow!",
            "details": {"daily_limit": 5, "remaining": 0},
            "correlation_id": "req_123456789",
            "timestamp": "2024-01-01T12:00:00Z"
        }
    })
