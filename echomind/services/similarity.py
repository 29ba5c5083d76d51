"""
Similarity scoring between a transcript and the phrase the learner was asked to say.

Two independent policies are provided:

- ``WordOverlapPolicy`` (threshold 0.80) for full-sentence practice
- ``LevenshteinPolicy`` (threshold 0.85) for single-word pronunciation
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional

from echomind.models.internal_models import SimilarityResult, Verdict

_PUNCTUATION = re.compile(r"[.,!?]")


def normalize_words(text: str) -> List[str]:
    """Lowercase, strip ``.,!?`` and split on whitespace."""
    cleaned = _PUNCTUATION.sub("", (text or "").lower()).strip()
    if not cleaned:
        return []
    return cleaned.split()


def word_overlap_similarity(target: str, transcript: str) -> float:
    """
    Fraction of target words that appear anywhere in the transcript.

    Order is ignored and duplicates in the target are each counted against
    the transcript's word set.

    Args:
        target: The phrase the learner was asked to say
        transcript: What the speech provider heard

    Returns:
        Similarity in [0.0, 1.0]; 0.0 when the target has no words
    """
    target_words = normalize_words(target)
    if not target_words:
        return 0.0

    transcript_words = set(normalize_words(transcript))
    match_count = sum(1 for word in target_words if word in transcript_words)
    return match_count / len(target_words)


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance with unit cost for substitution, insertion and deletion."""
    len1, len2 = len(first), len(second)
    matrix = [[0] * (len2 + 1) for _ in range(len1 + 1)]

    for i in range(len1 + 1):
        matrix[i][0] = i
    for j in range(len2 + 1):
        matrix[0][j] = j

    for i in range(1, len1 + 1):
        for j in range(1, len2 + 1):
            cost = 0 if first[i - 1] == second[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost
            )

    return matrix[len1][len2]


def levenshtein_similarity(first: str, second: str) -> float:
    """``1 - distance / max_len`` over lowercased inputs."""
    first = (first or "").lower()
    second = (second or "").lower()

    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0

    distance = levenshtein_distance(first, second)
    return 1 - distance / max(len(first), len(second))


def to_percent(similarity: float) -> int:
    """Similarity as a 0-100 integer, rounding halves up."""
    return int(math.floor(similarity * 100 + 0.5))


@dataclass(frozen=True)
class FeedbackMessages:
    """Feedback copy selected by score bracket (0-100 scale)."""

    perfect: str = "Perfect pronunciation! Excellent job!"
    great: str = "Great pronunciation! Just a few minor issues."
    good_effort: str = "Good effort! Focus on the stressed syllables."
    keep_practicing: str = "Keep practicing! Listen to the correct pronunciation and try again."
    try_again: str = "Let's try again. Listen carefully to the word and speak slowly."

    @classmethod
    def from_settings(cls, settings) -> "FeedbackMessages":
        return cls(
            perfect=settings.feedback_perfect,
            great=settings.feedback_great,
            good_effort=settings.feedback_good_effort,
            keep_practicing=settings.feedback_keep_practicing,
            try_again=settings.feedback_try_again,
        )

    def for_score(self, score: int) -> str:
        if score >= 95:
            return self.perfect
        if score >= 85:
            return self.great
        if score >= 70:
            return self.good_effort
        if score >= 50:
            return self.keep_practicing
        return self.try_again


@dataclass(frozen=True)
class WordOverlapPolicy:
    """Sentence-level verdict: correct iff word overlap >= threshold."""

    threshold: float = 0.80

    def evaluate(self, target: str, transcript: str) -> SimilarityResult:
        similarity = word_overlap_similarity(target, transcript)
        verdict = Verdict.CORRECT if similarity >= self.threshold else Verdict.INCORRECT
        return SimilarityResult(
            similarity=similarity,
            score=to_percent(similarity),
            verdict=verdict,
            threshold=self.threshold,
        )


@dataclass(frozen=True)
class LevenshteinPolicy:
    """Word-level verdict: needs correction iff the 0-100 score < threshold * 100."""

    threshold: float = 0.85

    def evaluate(self, expected: str, transcript: str) -> SimilarityResult:
        similarity = levenshtein_similarity(transcript.strip(), expected.strip())
        return self.from_score(to_percent(similarity), similarity)

    def from_score(self, score: int, similarity: Optional[float] = None) -> SimilarityResult:
        """Build a result from a score already on the 0-100 scale."""
        if similarity is None:
            similarity = score / 100
        needs_correction = score < round(self.threshold * 100)
        return SimilarityResult(
            similarity=similarity,
            score=score,
            verdict=Verdict.INCORRECT if needs_correction else Verdict.CORRECT,
            threshold=self.threshold,
        )
