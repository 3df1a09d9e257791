"""
Word Error Rate on normalized Arabic text.
Word-level Levenshtein (S+D+I) / reference length via rapidfuzz.
"""
from typing import Optional

from rapidfuzz.distance import Levenshtein

from core.normalization import tokenize


def wer(reference: Optional[str], hypothesis: Optional[str]) -> float:
    """
    Word Error Rate: (S + D + I) / N where N = number of reference words.
    Returns value in [0, +inf); 0 = perfect match. Empty reference gives
    0.0 for an empty hypothesis and 1.0 otherwise.
    """
    ref_words = tokenize(reference)
    hyp_words = tokenize(hypothesis)
    if not ref_words:
        return 0.0 if not hyp_words else 1.0
    # rapidfuzz compares any sequences of hashables; lists of words give word-level edits
    edits = Levenshtein.distance(ref_words, hyp_words)
    return edits / len(ref_words)
