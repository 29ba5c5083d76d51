"""Client modules for external service integrations."""

from echomind.clients.deepgram_client import DeepgramClient
from echomind.clients.dictionary_client import DictionaryClient
from echomind.clients.elevenlabs_client import ElevenLabsClient, VoiceSettings
from echomind.clients.memory_store import (
    InMemoryProgressRepository,
    InMemoryUserRepository
)
from echomind.clients.repositories import (
    ProgressRepository,
    RepositoryError,
    UserRepository
)
from echomind.clients.supabase_client import (
    DatabaseManager,
    SupabaseClient,
    SupabaseProgressRepository,
    SupabaseUserRepository
)

__all__ = [
    "DeepgramClient",
    "DictionaryClient",
    "ElevenLabsClient",
    "VoiceSettings",
    "InMemoryProgressRepository",
    "InMemoryUserRepository",
    "ProgressRepository",
    "RepositoryError",
    "UserRepository",
    "DatabaseManager",
    "SupabaseClient",
    "SupabaseProgressRepository",
    "SupabaseUserRepository"
]
