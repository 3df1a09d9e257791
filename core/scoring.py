"""
Word and sequence similarity for recitation checking.
- word_similarity: exact match after normalization → 1.0, else character-set Jaccard.
- sequence_similarity: greedy exact-match count over max(len) (headline accuracy).

Character sets (not multisets) tolerate letter-order noise from speech
transcription and share most letters for Arabic root-and-pattern near misses.
"""
import math
from collections import Counter
from typing import Iterable

from core.normalization import normalize_arabic, tokenize

# >= 80% character overlap → word accepted while reciting
MATCH_THRESHOLD = 0.8


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the UI does (0.5 always goes up), not banker's rounding."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def to_percent(similarity: float) -> int:
    """[0, 1] similarity → integer percent."""
    return int(round_half_up(similarity * 100))


def word_similarity(a: str, b: str) -> float:
    """Similarity of two words in [0, 1]; symmetric, 1.0 only for equal normalized words."""
    norm_a = normalize_arabic(a)
    norm_b = normalize_arabic(b)
    if norm_a == norm_b:
        return 1.0

    chars_a = set(norm_a)
    chars_b = set(norm_b)
    union = chars_a | chars_b
    if not union:
        return 0.0
    return len(chars_a & chars_b) / len(union)


def _flatten_tokens(words: Iterable[str]):
    if isinstance(words, str):
        return tokenize(words)
    return [t for w in words for t in tokenize(w)]


def sequence_similarity(spoken_words: Iterable[str], reference_words: Iterable[str]) -> float:
    """
    Order-insensitive exact-match ratio: each spoken token consumes the first
    unconsumed equal reference token; matches / max(len(spoken), len(reference)).
    Both empty → 1.0.
    """
    spoken = _flatten_tokens(spoken_words)
    reference = _flatten_tokens(reference_words)
    longest = max(len(spoken), len(reference))
    if longest == 0:
        return 1.0
    # Greedy first-unconsumed matching pairs each word min(count_a, count_b) times
    matches = sum((Counter(spoken) & Counter(reference)).values())
    return matches / longest
