"""
Data model for the recitation-alignment engine: error events, aligner and
comparator results, and the immutable end-of-session report.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

INCORRECT = "incorrect"
MISSING = "missing"
EXTRA = "extra"
ERROR_TYPES = (INCORRECT, MISSING, EXTRA)


class CursorOutOfRangeError(ValueError):
    """Cursor passed to the aligner lies outside [0, len(reference)]."""


class SessionFinishedError(RuntimeError):
    """A finished session was fed more text or finished twice."""


@dataclass(frozen=True)
class ErrorEvent:
    """One classified deviation between spoken and reference text."""
    type: str
    position: int
    spoken: str = ""
    expected: str = ""
    similarity: int = 0  # percent, 0–100

    @classmethod
    def incorrect(cls, position: int, spoken: str, expected: str, similarity: int) -> "ErrorEvent":
        return cls(INCORRECT, position, spoken=spoken, expected=expected, similarity=similarity)

    @classmethod
    def missing(cls, position: int, expected: str) -> "ErrorEvent":
        return cls(MISSING, position, expected=expected)

    @classmethod
    def extra(cls, position: int, spoken: str) -> "ErrorEvent":
        return cls(EXTRA, position, spoken=spoken)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorEvent":
        kind = data.get("type")
        if kind not in ERROR_TYPES:
            raise ValueError(f"Unknown error type: {kind!r}")
        return cls(
            kind,
            int(data.get("position") or 0),
            spoken=data.get("spoken") or "",
            expected=data.get("expected") or "",
            similarity=int(data.get("similarity") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type, "position": self.position}
        if self.type in (INCORRECT, EXTRA):
            out["spoken"] = self.spoken
        if self.type in (INCORRECT, MISSING):
            out["expected"] = self.expected
        if self.type == INCORRECT:
            out["similarity"] = self.similarity
        return out


@dataclass(frozen=True)
class AdvanceResult:
    events: Tuple[ErrorEvent, ...]
    new_cursor: int


@dataclass(frozen=True)
class Comparison:
    differences: Tuple[ErrorEvent, ...]
    similarity: float


def categorize(events) -> Dict[str, Tuple[ErrorEvent, ...]]:
    """Group events by type, keeping order within each group."""
    return {kind: tuple(e for e in events if e.type == kind) for kind in ERROR_TYPES}


@dataclass(frozen=True)
class SessionReport:
    """Final analysis of one recitation session. Built once, never mutated."""
    accuracy: float
    completion: float
    total_words: int
    spoken_words: int
    errors_by_type: Mapping[str, Tuple[ErrorEvent, ...]]
    word_error_rate: float
    timestamp: str
    diff_strategy: str
    live_errors: Tuple[ErrorEvent, ...] = ()
    error_counts: Mapping[str, int] = field(init=False)
    total_errors: int = field(init=False)

    def __post_init__(self):
        # Read-only views; the report never changes after construction
        grouped = {kind: tuple(events) for kind, events in self.errors_by_type.items()}
        object.__setattr__(self, "errors_by_type", MappingProxyType(grouped))
        counts = {kind: len(grouped.get(kind, ())) for kind in ERROR_TYPES}
        object.__setattr__(self, "error_counts", MappingProxyType(counts))
        object.__setattr__(self, "live_errors", tuple(self.live_errors))
        object.__setattr__(self, "total_errors", sum(counts.values()))

    @property
    def differences(self) -> List[ErrorEvent]:
        return [e for kind in ERROR_TYPES for e in self.errors_by_type.get(kind, ())]

    def to_dict(self, suggestions: Optional[List[str]] = None) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "overall_accuracy": self.accuracy,
            "completion_percentage": self.completion,
            "total_words": self.total_words,
            "spoken_words": self.spoken_words,
            "total_errors": self.total_errors,
            "errors_by_type": {
                kind: [e.to_dict() for e in self.errors_by_type.get(kind, ())]
                for kind in ERROR_TYPES
            },
            "error_counts": dict(self.error_counts),
            "live_errors": [e.to_dict() for e in self.live_errors],
            "live_error_counts": {k: len(v) for k, v in categorize(self.live_errors).items()},
            "word_error_rate": self.word_error_rate,
            "diff_strategy": self.diff_strategy,
            "timestamp": self.timestamp,
        }
        if suggestions is not None:
            result["suggestions"] = suggestions
        return result
