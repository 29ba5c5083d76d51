"""
Pronunciation assessment and voice-correction workflows.

This module composes the quota gate, transcription, similarity scoring and
correction synthesis into the operations exposed over HTTP:

- Sentence practice with a throwaway voice clone (``analyze_and_correct``)
- Single-word assessment with progress tracking (``assess_word``)
- Corrected pronunciation in the user's persisted clone (``clone_correct``)
- Voice clone status and deletion, and dictionary phonetics
"""

import logging
import random
from typing import Optional

from echomind.clients.deepgram_client import DeepgramClient
from echomind.clients.dictionary_client import DictionaryClient
from echomind.clients.elevenlabs_client import ElevenLabsClient, VoiceSettings
from echomind.clients.memory_store import InMemoryProgressRepository, InMemoryUserRepository
from echomind.clients.repositories import ProgressRepository, RepositoryError, UserRepository
from echomind.clients.supabase_client import DatabaseManager
from echomind.config import Settings, settings as default_settings
from echomind.models.internal_models import (
    AudioSample,
    ClonedPronunciation,
    CorrectionOutcome,
    PhoneticEntry,
    PracticeRecord,
    TranscriptSource,
    Verdict,
    VoiceStatus,
    WordAssessment
)
from echomind.services.exceptions import MissingInput
from echomind.services.quota_service import QuotaService
from echomind.services.similarity import FeedbackMessages, LevenshteinPolicy, WordOverlapPolicy
from echomind.services.syllables import OfflineAnalyzer
from echomind.services.transcription_service import TranscriptionService
from echomind.services.voice_clone_service import CorrectionSynthesizer, VoiceCloneResolver

logger = logging.getLogger(__name__)

CORRECT_FEEDBACK = "Excellent! Your pronunciation is great!"
CORRECTED_FEEDBACK = "Listen to the correct pronunciation in your own voice!"
UNCORRECTED_FEEDBACK = "Your pronunciation needs improvement. Try again!"
CLONE_SUCCESS_MESSAGE = "Here is the correct pronunciation in your own voice."
CLONE_UNAVAILABLE_MESSAGE = "Voice correction is unavailable right now. Please try again later."


def _require_audio(audio: Optional[AudioSample]) -> AudioSample:
    if audio is None or not audio.data:
        raise MissingInput("Audio file and text are required")
    return audio


def _require_text(text: Optional[str], message: str) -> str:
    if not text or not text.strip():
        raise MissingInput(message)
    return text.strip()


class PronunciationService:
    """Orchestrates pronunciation assessment and cloned-voice correction."""

    def __init__(
        self,
        quota: QuotaService,
        transcription: TranscriptionService,
        synthesizer: CorrectionSynthesizer,
        progress: ProgressRepository,
        dictionary: Optional[DictionaryClient] = None,
        sentence_policy: Optional[WordOverlapPolicy] = None,
        word_policy: Optional[LevenshteinPolicy] = None,
        feedback: Optional[FeedbackMessages] = None
    ):
        self.quota = quota
        self.transcription = transcription
        self.synthesizer = synthesizer
        self.progress = progress
        self.dictionary = dictionary
        self.sentence_policy = sentence_policy or WordOverlapPolicy()
        self.word_policy = word_policy or LevenshteinPolicy()
        self.feedback = feedback or FeedbackMessages()

        logger.info(
            f"Pronunciation service initialized: sentence threshold {self.sentence_policy.threshold}, "
            f"word threshold {self.word_policy.threshold}, daily limit {self.quota.daily_limit}"
        )

    @property
    def users(self) -> UserRepository:
        return self.quota.users

    async def analyze_and_correct(
        self,
        user_id: str,
        target_phrase: Optional[str],
        audio: Optional[AudioSample]
    ) -> CorrectionOutcome:
        """
        Score a spoken sentence and, when it is wrong, speak it back in the
        learner's own voice.

        Steps:
        1. Validate inputs before any I/O
        2. Check the daily quota
        3. Transcribe; offline transcripts return the syllable demo verdict
        4. Score with the word-overlap policy
        5. On an incorrect verdict, synthesize with a throwaway clone and
           spend one quota unit only if synthesis succeeded

        Raises:
            MissingInput: When the phrase or audio is absent
            QuotaExceeded: When today's quota is used up
            PersistenceFailure: When the user or quota cannot be read or written
        """
        audio = _require_audio(audio)
        phrase = _require_text(target_phrase, "Audio file and sentence are required")

        user = await self.quota.load_user(user_id)
        remaining = self.quota.check(user)

        transcription = await self.transcription.transcribe(audio.data, audio.mime_type, phrase)

        if transcription.is_offline:
            analysis = transcription.offline_analysis
            logger.info(f"Offline analysis for user {user_id}: {analysis.similarity}% {analysis.verdict.value}")
            return CorrectionOutcome(
                verdict=analysis.verdict,
                similarity_score=analysis.similarity,
                transcript=transcription.transcript,
                feedback=analysis.feedback,
                remaining_quota=remaining,
                daily_limit=self.quota.daily_limit,
                source=TranscriptSource.OFFLINE,
                offline_analysis=analysis,
            )

        result = self.sentence_policy.evaluate(phrase, transcription.transcript)
        logger.info(f"Sentence score for user {user_id}: {result.score} ({result.verdict.value})")

        if result.verdict is Verdict.CORRECT:
            return CorrectionOutcome(
                verdict=result.verdict,
                similarity_score=result.score,
                transcript=transcription.transcript,
                feedback=CORRECT_FEEDBACK,
                remaining_quota=remaining,
                daily_limit=self.quota.daily_limit,
                source=TranscriptSource.PROVIDER,
            )

        correction = await self.synthesizer.synthesize_ephemeral(user_id, phrase, audio)
        if not correction.ok:
            logger.warning(f"Correction unavailable for user {user_id}: {correction.error.message}")
            return CorrectionOutcome(
                verdict=result.verdict,
                similarity_score=result.score,
                transcript=transcription.transcript,
                feedback=UNCORRECTED_FEEDBACK,
                remaining_quota=remaining,
                daily_limit=self.quota.daily_limit,
                source=TranscriptSource.PROVIDER,
                correction_error=correction.error,
            )

        remaining = await self.quota.consume(user_id)
        return CorrectionOutcome(
            verdict=result.verdict,
            similarity_score=result.score,
            transcript=transcription.transcript,
            feedback=CORRECTED_FEEDBACK,
            remaining_quota=remaining,
            daily_limit=self.quota.daily_limit,
            source=TranscriptSource.PROVIDER,
            corrected_audio=correction.value,
        )

    async def assess_word(
        self,
        user_id: str,
        expected_text: Optional[str],
        audio: Optional[AudioSample]
    ) -> WordAssessment:
        """
        Score a single word with the Levenshtein policy and record progress.

        Offline transcripts get a randomized demo score. Progress and points
        are written on a best-effort basis.
        """
        audio = _require_audio(audio)
        expected = _require_text(expected_text, "Audio file and text are required")

        transcription = await self.transcription.transcribe(audio.data, audio.mime_type, expected)

        if transcription.is_offline:
            result = self.word_policy.from_score(self.transcription.analyzer.demo_score())
        else:
            result = self.word_policy.evaluate(expected, transcription.transcript)

        assessment = WordAssessment(
            score=result.score,
            transcription=transcription.transcript,
            expected_text=expected,
            needs_correction=result.needs_correction,
            feedback=self.feedback.for_score(result.score),
            source=transcription.source,
        )

        await self._record_progress(user_id, assessment)
        return assessment

    async def _record_progress(self, user_id: str, assessment: WordAssessment) -> None:
        points = assessment.score // 10
        record = PracticeRecord(
            user_id=user_id,
            score=assessment.score,
            points_earned=points,
            details={"word": assessment.expected_text, "needsCorrection": assessment.needs_correction},
        )

        try:
            await self.progress.record_practice(record)
            await self.users.add_points(user_id, points)
        except RepositoryError as e:
            logger.error(f"Failed to record practice progress for user {user_id}: {e}")

    async def clone_correct(
        self,
        user_id: str,
        text: Optional[str],
        audio: Optional[AudioSample] = None
    ) -> ClonedPronunciation:
        """
        Speak ``text`` in the user's persisted voice clone.

        The clone is created from ``audio`` the first time. A provider failure
        is a partial success: no audio, an explanatory message and no quota
        spent.

        Raises:
            MissingInput: When text is absent
            QuotaExceeded: When today's quota is used up
            NoVoiceSample: When no clone exists and no audio was supplied
        """
        phrase = _require_text(text, "Text is required")
        sample = audio if audio is not None and audio.data else None

        user = await self.quota.load_user(user_id)
        remaining = self.quota.check(user)

        correction = await self.synthesizer.synthesize_persisted(user, phrase, sample)
        if not correction.ok:
            logger.warning(f"Cloned pronunciation unavailable for user {user_id}: {correction.error.message}")
            return ClonedPronunciation(
                text=phrase,
                usage_remaining=remaining,
                daily_limit=self.quota.daily_limit,
                message=CLONE_UNAVAILABLE_MESSAGE,
            )

        remaining = await self.quota.consume(user_id)
        return ClonedPronunciation(
            text=phrase,
            usage_remaining=remaining,
            daily_limit=self.quota.daily_limit,
            message=CLONE_SUCCESS_MESSAGE,
            audio=correction.value,
        )

    async def voice_status(self, user_id: str) -> VoiceStatus:
        return await self.quota.status(user_id)

    async def delete_voice_clone(self, user_id: str) -> bool:
        user = await self.quota.load_user(user_id)
        return await self.synthesizer.resolver.delete_voice_clone(user)

    async def phonetics(self, word: Optional[str]) -> PhoneticEntry:
        """Dictionary phonetics for ``word``; lookup failures give an empty entry."""
        word = _require_text(word, "Word is required")
        if self.dictionary is None:
            return PhoneticEntry(word=word)

        result = await self.dictionary.lookup(word)
        if not result.ok:
            return PhoneticEntry(word=word)
        return result.value

    async def close(self) -> None:
        """Close provider HTTP clients."""
        for client in (self.transcription.client, self.synthesizer.client, self.dictionary):
            if client is not None:
                await client.close()


def build_pronunciation_service(config: Settings) -> PronunciationService:
    """
    Wire a PronunciationService from explicit settings.

    Providers without an API key are left unconfigured so their stage falls
    back to offline behavior.
    """
    timeout = config.provider_timeout_seconds

    if config.user_store == "supabase":
        db = DatabaseManager(config.supabase_url, config.supabase_key)
        users, progress = db.users, db.progress
    else:
        logger.info("Using in-memory user store")
        users, progress = InMemoryUserRepository(auto_create=True), InMemoryProgressRepository()

    deepgram = None
    if config.deepgram_api_key:
        deepgram = DeepgramClient(
            api_key=config.deepgram_api_key,
            base_url=config.deepgram_base_url,
            model=config.deepgram_model,
            language=config.deepgram_language,
            timeout=timeout,
        )
    else:
        logger.warning("DEEPGRAM_API_KEY not set, transcription runs in offline demo mode")

    elevenlabs = None
    if config.elevenlabs_api_key:
        elevenlabs = ElevenLabsClient(
            api_key=config.elevenlabs_api_key,
            base_url=config.elevenlabs_base_url,
            timeout=timeout,
        )
    else:
        logger.warning("ELEVENLABS_API_KEY not set, voice correction is disabled")

    analyzer = OfflineAnalyzer(
        rng=random.Random(config.demo_random_seed),
        pass_threshold=config.offline_pass_threshold,
    )

    synthesizer = CorrectionSynthesizer(
        resolver=VoiceCloneResolver(elevenlabs, users),
        persisted_settings=VoiceSettings(
            stability=config.persisted_stability,
            similarity_boost=config.persisted_similarity_boost,
        ),
        ephemeral_settings=VoiceSettings(
            stability=config.ephemeral_stability,
            similarity_boost=config.ephemeral_similarity_boost,
        ),
        persisted_model_id=config.elevenlabs_persisted_model_id,
        ephemeral_model_id=config.elevenlabs_ephemeral_model_id,
    )

    return PronunciationService(
        quota=QuotaService(users, daily_limit=config.daily_clone_limit),
        transcription=TranscriptionService(deepgram, analyzer),
        synthesizer=synthesizer,
        progress=progress,
        dictionary=DictionaryClient(base_url=config.dictionary_base_url, timeout=timeout),
        sentence_policy=WordOverlapPolicy(config.word_overlap_threshold),
        word_policy=LevenshteinPolicy(config.levenshtein_threshold),
        feedback=FeedbackMessages.from_settings(config),
    )


# Global service instance
_pronunciation_service: Optional[PronunciationService] = None


def get_pronunciation_service() -> PronunciationService:
    """
    Get the global pronunciation service instance.

    Returns:
        PronunciationService: The global pronunciation service instance
    """
    global _pronunciation_service
    if _pronunciation_service is None:
        _pronunciation_service = build_pronunciation_service(default_settings)
    return _pronunciation_service


async def shutdown_pronunciation_service() -> None:
    """Close and drop the global service instance."""
    global _pronunciation_service
    if _pronunciation_service is not None:
        await _pronunciation_service.close()
        _pronunciation_service = None
