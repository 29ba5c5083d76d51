"""Internal data models for the EchoMind pronunciation service."""

import base64
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class Verdict(str, Enum):
    """Binary classification of a pronunciation attempt."""

    CORRECT = "Correct"
    INCORRECT = "Incorrect"


class TranscriptSource(str, Enum):
    """Where a transcript came from."""

    PROVIDER = "provider"
    OFFLINE = "offline"


@dataclass
class UserRecord:
    """The slice of a user document this service reads and writes."""

    id: str
    voice_clone_id: Optional[str] = None
    daily_voice_usage: int = 0
    last_voice_usage_date: Optional[date] = None
    level: Optional[str] = None
    points: int = 0

    def __post_init__(self):
        """Validate quota counter after initialization."""
        if self.daily_voice_usage < 0:
            raise ValueError(f"daily_voice_usage must be >= 0, got {self.daily_voice_usage}")

    @property
    def has_voice_clone(self) -> bool:
        return bool(self.voice_clone_id)


@dataclass
class VoiceQuota:
    """Daily voice-cloning allowance for one user, with lazy day rollover."""

    owner_user_id: str
    usage_count: int
    last_reset_date: Optional[date]
    daily_limit: int

    @classmethod
    def for_user(cls, user: UserRecord, daily_limit: int) -> "VoiceQuota":
        return cls(
            owner_user_id=user.id,
            usage_count=user.daily_voice_usage,
            last_reset_date=user.last_voice_usage_date,
            daily_limit=daily_limit,
        )

    def effective_usage(self, today: date) -> int:
        """Stored usage, or 0 when the stored date is not today."""
        if self.last_reset_date != today:
            return 0
        return self.usage_count

    def remaining(self, today: date) -> int:
        return max(0, self.daily_limit - self.effective_usage(today))

    def is_exhausted(self, today: date) -> bool:
        return self.effective_usage(today) >= self.daily_limit


@dataclass
class AudioSample:
    """A validated recording, owned by the request that uploaded it."""

    data: bytes
    mime_type: str


@dataclass
class ProviderError:
    """A failed or unavailable call to an external vendor."""

    provider: str
    operation: str
    message: str
    status_code: Optional[int] = None
    unconfigured: bool = False


@dataclass
class ProviderResult(Generic[T]):
    """Outcome of a provider call: either a value or a ProviderError."""

    value: Optional[T] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ProviderResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ProviderError) -> "ProviderResult[T]":
        return cls(error=error)


@dataclass
class SimilarityResult:
    """Score and verdict produced by a similarity policy."""

    similarity: float  # 0.0 - 1.0
    score: int  # 0 - 100
    verdict: Verdict
    threshold: float

    @property
    def needs_correction(self) -> bool:
        return self.verdict is Verdict.INCORRECT


@dataclass
class SyllableAnalysis:
    """Per-syllable feedback for the offline demo analysis."""

    syllable: str
    correct: bool
    phonetic: str
    tip: Optional[str] = None


@dataclass
class OfflineAnalysis:
    """Randomized syllable breakdown used when no transcription is available."""

    similarity: int
    verdict: Verdict
    syllables: List[SyllableAnalysis]
    feedback: str
    common_mistakes: List[str] = field(default_factory=list)


@dataclass
class TranscriptionOutcome:
    """Transcript plus how it was obtained."""

    transcript: str
    source: TranscriptSource
    offline_analysis: Optional[OfflineAnalysis] = None
    provider_error: Optional[ProviderError] = None

    @property
    def is_offline(self) -> bool:
        return self.source is TranscriptSource.OFFLINE


@dataclass
class CorrectedAudio:
    """Synthesized audio of the target phrase in the user's cloned voice."""

    audio: bytes
    content_type: str = "audio/mpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.audio).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.content_type};base64,{self.to_base64()}"


@dataclass
class CorrectionOutcome:
    """Aggregated result of the analyze-and-correct workflow."""

    verdict: Verdict
    similarity_score: int
    transcript: str
    feedback: str
    remaining_quota: int
    daily_limit: int
    source: TranscriptSource
    corrected_audio: Optional[CorrectedAudio] = None
    offline_analysis: Optional[OfflineAnalysis] = None
    correction_error: Optional[ProviderError] = None


@dataclass
class WordAssessment:
    """Levenshtein-based assessment of a single word or short phrase."""

    score: int
    transcription: str
    expected_text: str
    needs_correction: bool
    feedback: str
    source: TranscriptSource


@dataclass
class ClonedPronunciation:
    """Result of synthesizing a phrase in the user's persisted voice clone."""

    text: str
    usage_remaining: int
    daily_limit: int
    message: str
    audio: Optional[CorrectedAudio] = None


@dataclass
class VoiceStatus:
    """Voice clone and quota snapshot for a user."""

    has_voice_clone: bool
    remaining: int
    daily_limit: int


@dataclass
class PhoneticEntry:
    """Dictionary phonetics for a word."""

    word: str
    phonetic: str = ""
    audio_url: str = ""
    meanings: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class PracticeRecord:
    """Progress entry written after a pronunciation practice attempt."""

    user_id: str
    score: int
    points_earned: int
    details: Dict[str, Any]
    type: str = "pronunciation-practice"
    completed_at: datetime = field(default_factory=datetime.utcnow)
    id: Optional[str] = None  # Database-generated ID
