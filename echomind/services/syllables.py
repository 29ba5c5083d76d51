"""
Offline syllable analysis used when no transcription provider is available.

The per-syllable verdicts are random draws, not an acoustic measurement. They
exist so the practice screen stays usable in demo mode. All randomness comes
from the injected ``random.Random`` so results are reproducible under a seed.
"""

import logging
import random
from typing import List, Optional

from echomind.models.internal_models import OfflineAnalysis, SyllableAnalysis, Verdict
from echomind.services.similarity import normalize_words, to_percent

logger = logging.getLogger(__name__)

VOWELS = "aeiouy"

PHONETICS = {
    "per": "/pɜr/", "pre": "/pri/", "pro": "/proʊ/",
    "se": "/sə/", "si": "/si/", "so": "/soʊ/",
    "ver": "/vɜr/", "tion": "/ʃən/", "ance": "/əns/",
    "ence": "/əns/", "ing": "/ɪŋ/", "ed": "/d/",
    "er": "/ər/", "or": "/ɔr/", "ar": "/ɑr/",
    "ful": "/fəl/", "ment": "/mənt/", "ness": "/nəs/",
    "be": "/bi/", "au": "/ɔ/", "ti": "/ti/",
}

TIP_TEMPLATES = [
    'Stress "{syllable}" more clearly',
    'Vowel in "{syllable}" should be shorter',
    'Pronounce "{syllable}" more slowly',
    "Focus on ending sound",
    "Soften the consonant",
]

COMMON_MISTAKES = ["Watch the stress placement", "Practice vowel sounds"]

PASS_FEEDBACK = "Great job! Your pronunciation is improving!"
FAIL_FEEDBACK = "Keep practicing! Focus on the red syllables."


def split_syllables(word: str) -> List[str]:
    """
    Naive syllable split.

    A boundary is cut before a consonant-vowel pair once the current chunk
    already holds a vowel. A trailing consonant-only remainder is merged into
    the previous syllable.
    """
    syllables: List[str] = []
    current = ""
    has_vowel = False

    for i, ch in enumerate(word):
        char = ch.lower()
        current += ch

        if char in VOWELS:
            has_vowel = True

        if has_vowel and i < len(word) - 1:
            following = word[i + 1].lower()
            if char not in VOWELS and following in VOWELS:
                syllables.append(current)
                current = ""
                has_vowel = False

    if current:
        if syllables and not has_vowel:
            syllables[-1] += current
        else:
            syllables.append(current)

    return syllables if syllables else [word]


def phonetic_guess(syllable: str) -> str:
    """Canned IPA-ish rendering, or the slash-wrapped syllable."""
    lowered = syllable.lower()
    return PHONETICS.get(lowered, f"/{lowered}/")


class OfflineAnalyzer:
    """Builds randomized syllable breakdowns for demo mode."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        correct_probability: float = 0.6,
        tip_probability: float = 0.4,
        pass_threshold: int = 75
    ):
        self.rng = rng or random.Random()
        self.correct_probability = correct_probability
        self.tip_probability = tip_probability
        self.pass_threshold = pass_threshold

    def syllables_for(self, phrase: str) -> List[str]:
        syllables: List[str] = []
        for word in normalize_words(phrase):
            syllables.extend(split_syllables(word))
        return syllables

    def _tip(self, syllable: str) -> str:
        return self.rng.choice(TIP_TEMPLATES).format(syllable=syllable)

    def analyze(self, phrase: str) -> OfflineAnalysis:
        """
        Produce a syllable breakdown for ``phrase``.

        Args:
            phrase: Target word or sentence

        Returns:
            OfflineAnalysis whose similarity is the percentage of syllables
            drawn as correct
        """
        breakdown = []
        for syllable in self.syllables_for(phrase):
            correct = self.rng.random() < self.correct_probability
            tip = self._tip(syllable) if self.rng.random() < self.tip_probability else None
            breakdown.append(SyllableAnalysis(
                syllable=syllable,
                correct=correct,
                phonetic=phonetic_guess(syllable),
                tip=tip
            ))

        if breakdown:
            correct_count = sum(1 for item in breakdown if item.correct)
            similarity = to_percent(correct_count / len(breakdown))
        else:
            similarity = 0

        passed = similarity >= self.pass_threshold
        logger.debug(f"Offline analysis of {len(breakdown)} syllables: similarity={similarity}")

        return OfflineAnalysis(
            similarity=similarity,
            verdict=Verdict.CORRECT if passed else Verdict.INCORRECT,
            syllables=breakdown,
            feedback=PASS_FEEDBACK if passed else FAIL_FEEDBACK,
            common_mistakes=list(COMMON_MISTAKES),
        )

    def demo_score(self) -> int:
        """Plausible single-word score in [60, 94]."""
        return 60 + self.rng.randrange(35)
