"""Free Dictionary API client for word phonetics."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from echomind.models.internal_models import PhoneticEntry, ProviderError, ProviderResult

logger = logging.getLogger(__name__)

PROVIDER = "dictionaryapi"


def parse_entry(word: str, payload: Any) -> PhoneticEntry:
    """Build a PhoneticEntry from the first dictionary entry."""
    if not isinstance(payload, list) or not payload:
        return PhoneticEntry(word=word)

    entry = payload[0]
    if not isinstance(entry, dict):
        return PhoneticEntry(word=word)

    phonetics: List[Dict[str, Any]] = entry.get("phonetics") or []

    phonetic = entry.get("phonetic") or next(
        (p["text"] for p in phonetics if p.get("text")), ""
    )
    audio_url = next((p["audio"] for p in phonetics if p.get("audio")), "")

    meanings = []
    for meaning in (entry.get("meanings") or [])[:2]:
        definitions = meaning.get("definitions") or [{}]
        meanings.append({
            "partOfSpeech": meaning.get("partOfSpeech"),
            "definition": definitions[0].get("definition"),
        })

    return PhoneticEntry(word=word, phonetic=phonetic, audio_url=audio_url, meanings=meanings)


class DictionaryClient:
    """Looks up IPA transcriptions and reference audio for English words."""

    def __init__(
        self,
        base_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def lookup(self, word: str) -> ProviderResult[PhoneticEntry]:
        """Fetch phonetics for ``word``."""
        try:
            client = await self._get_client()
            response = await client.get(f"/{quote(word)}")
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Phonetics lookup failed for {word!r}: {type(e).__name__}")
            return ProviderResult.failure(ProviderError(
                provider=PROVIDER,
                operation="lookup",
                message=f"Lookup failed: {type(e).__name__}"
            ))

        return ProviderResult.success(parse_entry(word, payload))

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
