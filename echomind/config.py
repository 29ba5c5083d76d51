"""Configuration management for the EchoMind pronunciation service."""

from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    # Server configuration
    port: int = 8000
    host: str = "0.0.0.0"

    # User store: "supabase" or "memory" (local demo mode)
    user_store: str = "memory"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Speech-to-text provider (Deepgram)
    deepgram_api_key: Optional[str] = None
    deepgram_base_url: str = "https://api.deepgram.com/v1"
    deepgram_model: str = "nova-2"
    deepgram_language: str = "en"

    # Voice cloning / synthesis provider (ElevenLabs)
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    elevenlabs_persisted_model_id: str = "eleven_multilingual_v2"
    elevenlabs_ephemeral_model_id: str = "eleven_monolingual_v1"

    # Dictionary lookup for phonetics
    dictionary_base_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en"

    # Every outbound provider call uses this timeout
    provider_timeout_seconds: float = 15.0

    # Voice clone quota
    daily_clone_limit: int = 5

    # Scoring policies
    word_overlap_threshold: float = 0.80
    levenshtein_threshold: float = 0.85
    offline_pass_threshold: int = 75
    demo_random_seed: Optional[int] = None

    # Voice shaping for the persisted per-user clone
    persisted_stability: float = 0.7
    persisted_similarity_boost: float = 0.8
    # Voice shaping for throwaway per-request clones
    ephemeral_stability: float = 0.75
    ephemeral_similarity_boost: float = 0.75

    # Feedback copy by score bracket
    feedback_perfect: str = "Perfect pronunciation! Excellent job!"
    feedback_great: str = "Great pronunciation! Just a few minor issues."
    feedback_good_effort: str = "Good effort! Focus on the stressed syllables."
    feedback_keep_practicing: str = "Keep practicing! Listen to the correct pronunciation and try again."
    feedback_try_again: str = "Let's try again. Listen carefully to the word and speak slowly."

    # Upload constraints
    max_audio_bytes: int = 10 * 1024 * 1024
    allowed_audio_types: List[str] = [
        "audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav",
        "audio/webm", "audio/m4a", "audio/mp4", "audio/ogg", "audio/aac"
    ]

    # CORS
    cors_allow_origins: List[str] = ["*"]

    # Logging and telemetry
    log_level: str = "INFO"
    otlp_endpoint: Optional[str] = None

    @field_validator('user_store')
    @classmethod
    def validate_user_store(cls, v):
        if v not in ("supabase", "memory"):
            raise ValueError('USER_STORE must be "supabase" or "memory"')
        return v

    @field_validator('word_overlap_threshold', 'levenshtein_threshold')
    @classmethod
    def validate_threshold(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('Similarity thresholds must be between 0.0 and 1.0')
        return v

    @field_validator('daily_clone_limit')
    @classmethod
    def validate_daily_clone_limit(cls, v):
        if v < 0:
            raise ValueError('DAILY_CLONE_LIMIT must not be negative')
        return v

    @field_validator('provider_timeout_seconds')
    @classmethod
    def validate_provider_timeout(cls, v):
        if v <= 0:
            raise ValueError('PROVIDER_TIMEOUT_SECONDS must be positive')
        return v


# Global settings instance
settings = Settings()
