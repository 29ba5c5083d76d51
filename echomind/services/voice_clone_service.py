"""
Voice cloning and corrected-pronunciation synthesis.

Two clone lifecycles exist side by side:

- persisted: one clone per user, created on first use and reused afterwards
- ephemeral: a throwaway clone per request, deleted right after synthesis
"""

import logging
from typing import Optional

from echomind.clients.elevenlabs_client import ElevenLabsClient, VoiceSettings
from echomind.clients.repositories import RepositoryError, UserRepository
from echomind.models.internal_models import (
    AudioSample,
    CorrectedAudio,
    ProviderError,
    ProviderResult,
    UserRecord
)
from echomind.services.exceptions import NoVoiceSample, PersistenceFailure

logger = logging.getLogger(__name__)


def _unconfigured(operation: str) -> ProviderResult:
    return ProviderResult.failure(ProviderError(
        provider="elevenlabs",
        operation=operation,
        message="Voice provider not configured",
        unconfigured=True
    ))


class VoiceCloneResolver:
    """Finds or creates the voice used to speak a correction."""

    def __init__(self, client: Optional[ElevenLabsClient], users: UserRepository):
        self.client = client
        self.users = users

    async def resolve_persisted(self, user: UserRecord, sample: Optional[AudioSample]) -> ProviderResult[str]:
        """
        Reuse the user's stored clone, or create and store one from ``sample``.

        Raises:
            NoVoiceSample: When the user has no clone and no sample was given
            PersistenceFailure: When the new clone id cannot be stored
        """
        if user.voice_clone_id:
            return ProviderResult.success(user.voice_clone_id)

        if sample is None:
            raise NoVoiceSample()

        if self.client is None:
            return _unconfigured("clone_voice")

        result = await self.client.clone_voice(
            name=f"echomind_user_{user.id}",
            audio_data=sample.data,
            mime_type=sample.mime_type,
        )
        if not result.ok:
            return result

        try:
            await self.users.set_voice_clone_id(user.id, result.value)
        except RepositoryError as e:
            logger.error(f"Failed to store voice clone {result.value} for user {user.id}: {e}")
            raise PersistenceFailure("Failed to save voice clone", {"user_id": user.id}) from e

        user.voice_clone_id = result.value
        logger.info(f"Stored new voice clone for user {user.id}")
        return result

    async def resolve_ephemeral(self, user_id: str, sample: AudioSample) -> ProviderResult[str]:
        """Create a throwaway clone that is never written to the user record."""
        if self.client is None:
            return _unconfigured("clone_voice")

        return await self.client.clone_voice(
            name=f"user_{user_id}_temp",
            audio_data=sample.data,
            mime_type=sample.mime_type,
            description="Temporary clone for pronunciation correction",
        )

    async def release_ephemeral(self, voice_id: str) -> None:
        """Delete a throwaway clone; failures are only logged."""
        if self.client is None:
            return

        result = await self.client.delete_voice(voice_id)
        if not result.ok:
            logger.warning(f"Ignoring failure to delete temporary voice {voice_id}: {result.error.message}")

    async def delete_voice_clone(self, user: UserRecord) -> bool:
        """
        Remove the user's persisted clone.

        The provider voice is deleted when a provider is configured; the stored
        id is cleared even if that call fails.

        Returns:
            Whether the user had a clone
        """
        if not user.voice_clone_id:
            return False

        if self.client is not None:
            result = await self.client.delete_voice(user.voice_clone_id)
            if not result.ok:
                logger.warning(
                    f"Provider delete of voice {user.voice_clone_id} failed: {result.error.message}"
                )

        try:
            await self.users.set_voice_clone_id(user.id, None)
        except RepositoryError as e:
            raise PersistenceFailure("Failed to clear voice clone", {"user_id": user.id}) from e

        user.voice_clone_id = None
        logger.info(f"Deleted voice clone for user {user.id}")
        return True


class CorrectionSynthesizer:
    """Speaks the target phrase in the learner's cloned voice."""

    def __init__(
        self,
        resolver: VoiceCloneResolver,
        persisted_settings: VoiceSettings,
        ephemeral_settings: VoiceSettings,
        persisted_model_id: str = "eleven_multilingual_v2",
        ephemeral_model_id: str = "eleven_monolingual_v1"
    ):
        self.resolver = resolver
        self.persisted_settings = persisted_settings
        self.ephemeral_settings = ephemeral_settings
        self.persisted_model_id = persisted_model_id
        self.ephemeral_model_id = ephemeral_model_id

    @property
    def client(self) -> Optional[ElevenLabsClient]:
        return self.resolver.client

    async def _speak(
        self,
        phrase: str,
        voice_id: str,
        settings: VoiceSettings,
        model_id: str
    ) -> ProviderResult[CorrectedAudio]:
        if self.client is None:
            return _unconfigured("text_to_speech")

        result = await self.client.text_to_speech(phrase, voice_id, settings, model_id)
        if not result.ok:
            return ProviderResult.failure(result.error)
        return ProviderResult.success(CorrectedAudio(audio=result.value))

    async def synthesize_persisted(
        self,
        user: UserRecord,
        phrase: str,
        sample: Optional[AudioSample]
    ) -> ProviderResult[CorrectedAudio]:
        """Synthesize with the user's long-lived clone, creating it if needed."""
        voice = await self.resolver.resolve_persisted(user, sample)
        if not voice.ok:
            return ProviderResult.failure(voice.error)

        return await self._speak(phrase, voice.value, self.persisted_settings, self.persisted_model_id)

    async def synthesize_ephemeral(
        self,
        user_id: str,
        phrase: str,
        sample: AudioSample
    ) -> ProviderResult[CorrectedAudio]:
        """Synthesize with a per-request clone that is deleted afterwards."""
        voice = await self.resolver.resolve_ephemeral(user_id, sample)
        if not voice.ok:
            return ProviderResult.failure(voice.error)

        try:
            return await self._speak(phrase, voice.value, self.ephemeral_settings, self.ephemeral_model_id)
        finally:
            await self.resolver.release_ephemeral(voice.value)
