"""
Incremental alignment of finalized transcript chunks against the reference.

Each chunk is compared word-by-word from the cursor onward. Matches and
mismatches both consume their reference position, so the cursor keeps moving
under noisy transcription; positions are never revisited. Words past the end
of the reference are reported as extra.
"""
import logging
from typing import List, Sequence

from core.models import AdvanceResult, CursorOutOfRangeError, ErrorEvent
from core.normalization import normalize_arabic, tokenize
from core.scoring import MATCH_THRESHOLD, to_percent, word_similarity

logger = logging.getLogger(__name__)


def advance(
    spoken_chunk: str,
    cursor: int,
    reference_words: Sequence[str],
    match_threshold: float = MATCH_THRESHOLD,
) -> AdvanceResult:
    """
    Align one finalized chunk starting at `cursor`.

    Args:
        spoken_chunk: Newly finalized transcript text (interim results excluded).
        cursor: Number of reference words already consumed.
        reference_words: Reference word sequence (raw or normalized).
        match_threshold: Minimum word_similarity to accept a word.

    Returns:
        AdvanceResult(events, new_cursor) with new_cursor >= cursor.

    Raises:
        CursorOutOfRangeError: cursor outside [0, len(reference_words)].
    """
    total = len(reference_words)
    if cursor < 0 or cursor > total:
        raise CursorOutOfRangeError(f"cursor {cursor} outside reference of {total} words")

    spoken_words = tokenize(spoken_chunk)
    if not spoken_words or cursor == total:
        return AdvanceResult(events=(), new_cursor=cursor)

    events: List[ErrorEvent] = []
    consumed = 0
    for i, spoken in enumerate(spoken_words):
        expected_pos = cursor + i
        if expected_pos >= total:
            events.append(ErrorEvent.extra(expected_pos, spoken))
            continue
        expected = normalize_arabic(reference_words[expected_pos])
        similarity = word_similarity(spoken, expected)
        if similarity < match_threshold:
            events.append(ErrorEvent.incorrect(expected_pos, spoken, expected, to_percent(similarity)))
        consumed += 1

    new_cursor = cursor + consumed
    logger.debug("advance: %d words, cursor %d -> %d, %d events", len(spoken_words), cursor, new_cursor, len(events))
    return AdvanceResult(events=tuple(events), new_cursor=new_cursor)
