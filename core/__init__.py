"""
Recitation-alignment engine: normalization, similarity, live alignment,
full-session comparison. Pure computation; no I/O.
"""

from core.alignment import advance
from core.comparison import ALIGNED, POSITIONAL, build_report, compare
from core.models import (
    AdvanceResult,
    Comparison,
    CursorOutOfRangeError,
    ErrorEvent,
    SessionFinishedError,
    SessionReport,
)
from core.normalization import normalize_arabic, tokenize
from core.scoring import MATCH_THRESHOLD, sequence_similarity, word_similarity
from core.session import RecitationSession

__all__ = [
    "advance",
    "compare",
    "build_report",
    "POSITIONAL",
    "ALIGNED",
    "AdvanceResult",
    "Comparison",
    "CursorOutOfRangeError",
    "ErrorEvent",
    "SessionFinishedError",
    "SessionReport",
    "normalize_arabic",
    "tokenize",
    "MATCH_THRESHOLD",
    "sequence_similarity",
    "word_similarity",
    "RecitationSession",
]
