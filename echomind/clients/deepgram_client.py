"""
Deepgram speech-to-text client.

Every call returns a ``ProviderResult``; network errors, HTTP errors and
malformed responses are reported as ``ProviderError`` values instead of being
raised, so callers can fall back to offline analysis.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from echomind.models.internal_models import ProviderError, ProviderResult

logger = logging.getLogger(__name__)

PROVIDER = "deepgram"


def extract_transcript(payload: Dict[str, Any]) -> str:
    """Best alternative of the first channel, or an empty string."""
    try:
        channels = payload.get("results", {}).get("channels") or []
        alternatives = channels[0].get("alternatives") or []
        return (alternatives[0].get("transcript") or "").strip()
    except (AttributeError, IndexError, TypeError):
        return ""


class DeepgramClient:
    """Async client for Deepgram's pre-recorded transcription endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.deepgram.com/v1",
        model: str = "nova-2",
        language: str = "en",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Deepgram client.

        Args:
            api_key: Deepgram API key
            base_url: API base URL
            model: Recognition model
            language: Recognition language code
            timeout: Timeout in seconds applied to the whole request
            transport: Optional httpx transport, used by tests
        """
        if not api_key:
            raise ValueError("Deepgram API key is required")

        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.language = language
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Token {self.api_key}"},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def transcribe(self, audio_data: bytes, mime_type: str) -> ProviderResult[str]:
        """
        Transcribe a recording.

        Args:
            audio_data: Raw audio bytes
            mime_type: Content type of the recording

        Returns:
            ProviderResult holding the top transcript alternative
        """
        try:
            client = await self._get_client()
            response = await client.post(
                "/listen",
                content=audio_data,
                params={"model": self.model, "language": self.language},
                headers={"Content-Type": mime_type or "audio/wav"},
            )
            response.raise_for_status()
            payload = response.json()

        except httpx.TimeoutException:
            logger.warning(f"Deepgram request timed out after {self.timeout}s")
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="transcribe",
                message=f"Request timed out after {self.timeout}s"
            ))
        except httpx.HTTPStatusError as e:
            logger.warning(f"Deepgram API error: {e.response.status_code}")
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="transcribe",
                message=f"API error: {e.response.status_code}",
                status_code=e.response.status_code
            ))
        except httpx.HTTPError as e:
            logger.warning(f"Failed to reach Deepgram API: {e}")
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="transcribe",
                message=f"Connection failed: {type(e).__name__}"
            ))
        except ValueError:
            logger.warning("Deepgram returned a non-JSON response")
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="transcribe",
                message="Malformed response"
            ))

        if not isinstance(payload, dict):
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="transcribe",
                message="Malformed response"
            ))

        transcript = extract_transcript(payload)
        logger.info(f"Deepgram transcription completed: {len(transcript)} characters")
        return ProviderResult.success(transcript)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
