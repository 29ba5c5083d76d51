"""Speech-to-text with an offline fallback."""

import logging
from typing import Optional

from echomind.clients.deepgram_client import DeepgramClient
from echomind.models.internal_models import (
    ProviderError,
    TranscriptionOutcome,
    TranscriptSource
)
from echomind.services.syllables import OfflineAnalyzer

logger = logging.getLogger(__name__)


class TranscriptionService:
    """
    Turns a recording into a transcript.

    When no provider is configured, or the provider call fails, the outcome is
    marked offline: the transcript is the lowercased target phrase and a
    syllable breakdown is attached for display.
    """

    def __init__(self, client: Optional[DeepgramClient], analyzer: OfflineAnalyzer):
        self.client = client
        self.analyzer = analyzer

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def transcribe(self, audio_data: bytes, mime_type: str, target_phrase: str) -> TranscriptionOutcome:
        if self.client is None:
            logger.info("No transcription provider configured, using offline analysis")
            error = ProviderError(
                provider="deepgram",
                operation="transcribe",
                message="Transcription provider not configured",
                unconfigured=True
            )
            return self._offline(target_phrase, error)

        result = await self.client.transcribe(audio_data, mime_type)
        if result.ok:
            return TranscriptionOutcome(transcript=result.value, source=TranscriptSource.PROVIDER)

        logger.warning(f"Transcription failed, falling back to offline analysis: {result.error.message}")
        return self._offline(target_phrase, result.error)

    def _offline(self, target_phrase: str, error: ProviderError) -> TranscriptionOutcome:
        return TranscriptionOutcome(
            transcript=target_phrase.lower(),
            source=TranscriptSource.OFFLINE,
            offline_analysis=self.analyzer.analyze(target_phrase),
            provider_error=error,
        )
