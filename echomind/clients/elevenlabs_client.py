"""ElevenLabs client for voice cloning and cloned-voice speech synthesis."""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

import httpx

from echomind.models.internal_models import ProviderError, ProviderResult
from echomind.utils.audio_utils import filename_for_mime

logger = logging.getLogger(__name__)

PROVIDER = "elevenlabs"


@dataclass(frozen=True)
class VoiceSettings:
    """Voice-shaping parameters sent with every synthesis request."""

    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True


class ElevenLabsClient:
    """
    Async client for the ElevenLabs voice API.

    Covers the three calls the correction workflow needs: instant voice
    cloning, text-to-speech with a cloned voice, and voice deletion.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io/v1",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not api_key:
            raise ValueError("ElevenLabs API key is required")

        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"xi-api-key": self.api_key},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    def _failure(self, operation: str, error: Exception) -> ProviderResult:
        """Translate an httpx error into a ProviderResult failure."""
        if isinstance(error, httpx.TimeoutException):
            message = f"Request timed out after {self.timeout}s"
            status_code = None
        elif isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            message = f"API error: {status_code}"
        else:
            message = f"Connection failed: {type(error).__name__}"
            status_code = None

        logger.warning(f"ElevenLabs {operation} failed: {message}")
        return ProviderResult.failure(ProviderError(
            provider=PROVIDER,
            operation=operation,
            message=message,
            status_code=status_code
        ))

    async def clone_voice(
        self,
        name: str,
        audio_data: bytes,
        mime_type: str,
        description: str = "EchoMind user voice clone"
    ) -> ProviderResult[str]:
        """
        Create an instant voice clone from one recording.

        Args:
            name: Display name for the clone
            audio_data: Voice sample bytes
            mime_type: Content type of the sample
            description: Clone description

        Returns:
            ProviderResult holding the new voice id
        """
        try:
            client = await self._get_client()
            response = await client.post(
                "/voices/add",
                data={"name": name, "description": description},
                files={"files": (filename_for_mime(mime_type), audio_data, mime_type)},
            )
            response.raise_for_status()
            voice_id = response.json().get("voice_id")
        except httpx.HTTPError as e:
            return self._failure("clone_voice", e)
        except (ValueError, AttributeError):
            voice_id = None

        if not voice_id:
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="clone_voice",
                message="Response did not contain a voice_id"
            ))

        logger.info(f"Created ElevenLabs voice clone {voice_id}")
        return ProviderResult.success(voice_id)

    async def text_to_speech(
        self,
        text: str,
        voice_id: str,
        settings: VoiceSettings,
        model_id: str = "eleven_multilingual_v2"
    ) -> ProviderResult[bytes]:
        """
        Synthesize ``text`` with ``voice_id``.

        Returns:
            ProviderResult holding MP3 audio bytes
        """
        body = {
            "text": text,
            "model_id": model_id,
            "voice_settings": asdict(settings),
        }

        try:
            client = await self._get_client()
            response = await client.post(
                f"/text-to-speech/{voice_id}",
                json=body,
                headers={"Accept": "audio/mpeg"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            return self._failure("text_to_speech", e)

        if not response.content:
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="text_to_speech",
                message="Empty audio response"
            ))

        logger.info(f"Synthesized {len(response.content)} bytes with voice {voice_id}")
        return ProviderResult.success(response.content)

    async def delete_voice(self, voice_id: str) -> ProviderResult[bool]:
        """Delete a cloned voice."""
        try:
            client = await self._get_client()
            response = await client.delete(f"/voices/{voice_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            return self._failure("delete_voice", e)

        logger.info(f"Deleted ElevenLabs voice {voice_id}")
        return ProviderResult.success(True)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
