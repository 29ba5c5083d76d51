"""
Word pronunciation endpoints backed by the user's persisted voice clone.
"""

import time
from typing import Optional

import structlog
from fastapi import APIRouter, File, Form, UploadFile

from echomind.api.dependencies import AppSettings, CurrentUser, Service, read_audio_upload
from echomind.config import Settings
from echomind.models.api_models import (
    ClonedPronunciationResponse,
    DeleteVoiceCloneResponse,
    ErrorResponse,
    PhoneticsResponse,
    VoiceStatusResponse,
    WordAssessmentResponse
)
from echomind.observability import (
    record_assessment_metrics,
    record_correction_metrics,
    trace_function
)
from echomind.services.pronunciation_service import PronunciationService

logger = structlog.get_logger()
router = APIRouter(prefix="/api/pronunciation", tags=["pronunciation"])


@router.post(
    "/analyze",
    response_model=WordAssessmentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
@trace_function("assess_word_endpoint")
async def analyze_pronunciation(
    text: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    user_id: str = CurrentUser,
    service: PronunciationService = Service,
    config: Settings = AppSettings
) -> WordAssessmentResponse:
    """Score one spoken word and award practice points."""
    start_time = time.time()
    sample = await read_audio_upload(audio, config)

    assessment = await service.assess_word(user_id, text, sample)

    record_assessment_metrics(
        workflow="word",
        verdict="Incorrect" if assessment.needs_correction else "Correct",
        source=assessment.source.value,
        score=assessment.score,
        processing_time=time.time() - start_time
    )
    logger.info("Word assessment completed", user_id=user_id, score=assessment.score)

    return WordAssessmentResponse(
        score=assessment.score,
        transcription=assessment.transcription,
        expectedText=assessment.expected_text,
        needsCorrection=assessment.needs_correction,
        feedback=assessment.feedback,
        source=assessment.source.value
    )


@router.post(
    "/clone-correct",
    response_model=ClonedPronunciationResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
@trace_function("clone_correct_endpoint")
async def clone_correct(
    text: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    user_id: str = CurrentUser,
    service: PronunciationService = Service,
    config: Settings = AppSettings
) -> ClonedPronunciationResponse:
    """
    Speak ``text`` in the user's voice clone.

    The clone is created from ``audio`` on first use and reused afterwards.
    """
    sample = await read_audio_upload(audio, config)

    result = await service.clone_correct(user_id, text, sample)
    record_correction_metrics("persisted", result.audio is not None)

    return ClonedPronunciationResponse(
        text=result.text,
        audio=result.audio.to_base64() if result.audio else None,
        contentType=result.audio.content_type if result.audio else None,
        usageRemaining=result.usage_remaining,
        dailyLimit=result.daily_limit,
        message=result.message
    )


@router.get("/voice-status", response_model=VoiceStatusResponse)
async def voice_status(
    user_id: str = CurrentUser,
    service: PronunciationService = Service
) -> VoiceStatusResponse:
    """Whether the user has a voice clone, and today's remaining quota."""
    status = await service.voice_status(user_id)
    return VoiceStatusResponse(
        hasVoiceClone=status.has_voice_clone,
        remaining=status.remaining,
        dailyLimit=status.daily_limit
    )


@router.delete("/voice-clone", response_model=DeleteVoiceCloneResponse)
async def delete_voice_clone(
    user_id: str = CurrentUser,
    service: PronunciationService = Service
) -> DeleteVoiceCloneResponse:
    deleted = await service.delete_voice_clone(user_id)
    return DeleteVoiceCloneResponse(
        deleted=deleted,
        message="Voice clone deleted successfully" if deleted else "No voice clone to delete"
    )


@router.get("/phonetics/{word}", response_model=PhoneticsResponse)
async def phonetics(
    word: str,
    service: PronunciationService = Service
) -> PhoneticsResponse:
    entry = await service.phonetics(word)
    return PhoneticsResponse(
        word=entry.word,
        phonetic=entry.phonetic,
        audioUrl=entry.audio_url,
        meanings=entry.meanings
    )
