"""
Sentence practice endpoints: analyze a spoken sentence and correct it in the
learner's own voice.
"""

import time
from typing import Optional

import structlog
from fastapi import APIRouter, File, Form, UploadFile

from echomind.api.dependencies import AppSettings, CurrentUser, Service, read_audio_upload
from echomind.config import Settings
from echomind.models.api_models import (
    AnalyzeAndCorrectResponse,
    ErrorResponse,
    SyllableFeedback,
    VoiceStatusResponse
)
from echomind.models.internal_models import CorrectionOutcome
from echomind.observability import (
    record_assessment_metrics,
    record_correction_metrics,
    trace_function
)
from echomind.services.pronunciation_service import PronunciationService

logger = structlog.get_logger()
router = APIRouter(prefix="/api/practice", tags=["practice"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def to_response(outcome: CorrectionOutcome) -> AnalyzeAndCorrectResponse:
    response = AnalyzeAndCorrectResponse(
        verdict=outcome.verdict.value,
        similarityScore=outcome.similarity_score,
        transcript=outcome.transcript,
        feedback=outcome.feedback,
        remainingQuota=outcome.remaining_quota,
        dailyLimit=outcome.daily_limit,
        source=outcome.source.value,
    )

    if outcome.corrected_audio is not None:
        response.correctedAudioBase64 = outcome.corrected_audio.to_base64()
        response.correctedAudioContentType = outcome.corrected_audio.content_type

    if outcome.offline_analysis is not None:
        response.wordAnalysis = [
            SyllableFeedback(
                syllable=item.syllable,
                correct=item.correct,
                phonetic=item.phonetic,
                tip=item.tip
            )
            for item in outcome.offline_analysis.syllables
        ]
        response.commonMistakes = outcome.offline_analysis.common_mistakes

    return response


@router.post("/analyze-and-correct", response_model=AnalyzeAndCorrectResponse, responses=ERROR_RESPONSES)
@trace_function("analyze_and_correct_endpoint")
async def analyze_and_correct(
    sentence: Optional[str] = Form(None),
    targetPhrase: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    user_id: str = CurrentUser,
    service: PronunciationService = Service,
    config: Settings = AppSettings
) -> AnalyzeAndCorrectResponse:
    """
    Score a spoken sentence against its target phrase.

    An incorrect attempt is answered with the phrase spoken in the learner's
    own voice (one unit of the daily quota) when the voice provider is
    available. Without a transcription provider the response carries a
    syllable breakdown instead.
    """
    start_time = time.time()
    target = targetPhrase if targetPhrase is not None else sentence
    sample = await read_audio_upload(audio, config)

    logger.info("Analyze-and-correct request received", user_id=user_id)

    outcome = await service.analyze_and_correct(user_id, target, sample)

    record_assessment_metrics(
        workflow="sentence",
        verdict=outcome.verdict.value,
        source=outcome.source.value,
        score=outcome.similarity_score,
        processing_time=time.time() - start_time
    )
    if outcome.corrected_audio is not None or outcome.correction_error is not None:
        record_correction_metrics("ephemeral", outcome.corrected_audio is not None)

    logger.info(
        "Analyze-and-correct completed",
        user_id=user_id,
        verdict=outcome.verdict.value,
        score=outcome.similarity_score,
        corrected=outcome.corrected_audio is not None
    )
    return to_response(outcome)


@router.get("/quota", response_model=VoiceStatusResponse)
async def practice_quota(
    user_id: str = CurrentUser,
    service: PronunciationService = Service
) -> VoiceStatusResponse:
    """Remaining voice corrections for today."""
    status = await service.voice_status(user_id)
    return VoiceStatusResponse(
        hasVoiceClone=status.has_voice_clone,
        remaining=status.remaining,
        dailyLimit=status.daily_limit
    )
