"""
Full-session comparison: runs once when the recitation ends.

Two strategies for the detailed difference list:
- positional (default): index-aligned diff. A single omission or insertion
  shifts every later word into an "incorrect" slot.
- aligned: difflib opcodes re-synchronize after omissions/insertions, and the
  headline similarity is computed from the same alignment.

In positional mode the headline similarity is the order-insensitive
sequence_similarity, so the percentage and the error list may disagree.
"""
import logging
from datetime import datetime, timezone
from difflib import SequenceMatcher
from typing import Iterable, List, Optional

from core.metrics import wer
from core.models import Comparison, ErrorEvent, SessionReport, categorize
from core.normalization import tokenize
from core.scoring import round_half_up, sequence_similarity, to_percent, word_similarity

logger = logging.getLogger(__name__)

POSITIONAL = "positional"
ALIGNED = "aligned"
DIFF_STRATEGIES = (POSITIONAL, ALIGNED)


def _positional_diff(spoken: List[str], reference: List[str]) -> List[ErrorEvent]:
    differences: List[ErrorEvent] = []
    for i in range(max(len(spoken), len(reference))):
        spoken_word = spoken[i] if i < len(spoken) else None
        expected = reference[i] if i < len(reference) else None
        if spoken_word is not None and expected is not None:
            if spoken_word != expected:
                sim = to_percent(word_similarity(spoken_word, expected))
                differences.append(ErrorEvent.incorrect(i, spoken_word, expected, sim))
        elif spoken_word is not None:
            differences.append(ErrorEvent.extra(i, spoken_word))
        else:
            differences.append(ErrorEvent.missing(i, expected))
    return differences


def _aligned_diff(spoken: List[str], reference: List[str]):
    """
    Returns (differences, matched_count). Incorrect/missing carry the reference
    index; extra carries the spoken index.
    """
    matcher = SequenceMatcher(None, reference, spoken, autojunk=False)
    differences: List[ErrorEvent] = []
    matched = 0
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            matched += i2 - i1
        elif tag == "replace":
            ref_len, spk_len = i2 - i1, j2 - j1
            for k in range(max(ref_len, spk_len)):
                if k < ref_len and k < spk_len:
                    sim = to_percent(word_similarity(spoken[j1 + k], reference[i1 + k]))
                    differences.append(ErrorEvent.incorrect(i1 + k, spoken[j1 + k], reference[i1 + k], sim))
                elif k < ref_len:
                    differences.append(ErrorEvent.missing(i1 + k, reference[i1 + k]))
                else:
                    differences.append(ErrorEvent.extra(j1 + k, spoken[j1 + k]))
        elif tag == "delete":
            for i in range(i1, i2):
                differences.append(ErrorEvent.missing(i, reference[i]))
        elif tag == "insert":
            for j in range(j1, j2):
                differences.append(ErrorEvent.extra(j, spoken[j]))
    return differences, matched


def compare(
    spoken_transcript: Optional[str],
    reference_text: Optional[str],
    strategy: str = POSITIONAL,
) -> Comparison:
    """Diff the whole spoken transcript against the whole reference text."""
    if strategy not in DIFF_STRATEGIES:
        raise ValueError(f"Unknown diff strategy: {strategy!r}")
    spoken = tokenize(spoken_transcript)
    reference = tokenize(reference_text)

    if strategy == ALIGNED:
        differences, matched = _aligned_diff(spoken, reference)
        longest = max(len(spoken), len(reference))
        similarity = matched / longest if longest else 1.0
    else:
        differences = _positional_diff(spoken, reference)
        similarity = sequence_similarity(spoken, reference)

    return Comparison(differences=tuple(differences), similarity=similarity)


def build_report(
    spoken_transcript: Optional[str],
    reference_text: Optional[str],
    live_errors: Iterable[ErrorEvent] = (),
    strategy: str = POSITIONAL,
    now: Optional[datetime] = None,
) -> SessionReport:
    """
    Compare and assemble the final SessionReport.
    accuracy = similarity %, completion = spoken/total % capped at 100 (0 when
    the reference is empty); both rounded to one decimal.
    """
    comparison = compare(spoken_transcript, reference_text, strategy=strategy)
    total_words = len(tokenize(reference_text))
    spoken_words = len(tokenize(spoken_transcript))

    accuracy = round_half_up(comparison.similarity * 100, 1)
    if total_words:
        completion = round_half_up(min(spoken_words / total_words, 1.0) * 100, 1)
    else:
        completion = 0.0

    report = SessionReport(
        accuracy=accuracy,
        completion=completion,
        total_words=total_words,
        spoken_words=spoken_words,
        errors_by_type=categorize(comparison.differences),
        word_error_rate=round(wer(reference_text, spoken_transcript), 4),
        timestamp=(now or datetime.now(timezone.utc)).isoformat(),
        diff_strategy=strategy,
        live_errors=tuple(live_errors),
    )
    logger.debug(
        "Session report: accuracy=%.1f completion=%.1f errors=%s",
        report.accuracy, report.completion, report.error_counts,
    )
    return report
