"""
Per-session recitation state: cursor, accumulated error events, transcript.

Owned by one caller; not thread-safe. Callers that receive chunks
concurrently must serialize feed() per session.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from core.alignment import advance
from core.comparison import POSITIONAL, build_report
from core.models import AdvanceResult, ErrorEvent, SessionFinishedError, SessionReport
from core.normalization import tokenize
from core.scoring import MATCH_THRESHOLD


@dataclass
class RecitationSession:
    reference_text: str
    match_threshold: float = MATCH_THRESHOLD
    diff_strategy: str = POSITIONAL
    reference_words: Tuple[str, ...] = field(init=False)
    cursor: int = field(init=False, default=0)
    events: List[ErrorEvent] = field(init=False, default_factory=list)
    chunks: List[str] = field(init=False, default_factory=list)
    report: Optional[SessionReport] = field(init=False, default=None)

    def __post_init__(self):
        self.reference_words = tuple(tokenize(self.reference_text))

    @property
    def total_words(self) -> int:
        return len(self.reference_words)

    @property
    def transcript(self) -> str:
        return " ".join(self.chunks)

    @property
    def progress(self) -> float:
        """Share of the reference consumed so far, 0–100."""
        if not self.total_words:
            return 0.0
        return min(self.cursor / self.total_words * 100, 100.0)

    @property
    def finished(self) -> bool:
        return self.report is not None

    def feed(self, chunk: str) -> AdvanceResult:
        """Align one finalized chunk; the chunk is kept for the final transcript."""
        if self.finished:
            raise SessionFinishedError("session already finished")
        result = advance(chunk, self.cursor, self.reference_words, self.match_threshold)
        if chunk and chunk.strip():
            self.chunks.append(chunk.strip())
        self.events.extend(result.events)
        self.cursor = result.new_cursor
        return result

    def restart(self) -> None:
        """Start a new attempt on the same reference."""
        if self.finished:
            raise SessionFinishedError("session already finished")
        self.cursor = 0
        self.events.clear()
        self.chunks.clear()

    def finish(self) -> SessionReport:
        """Build the final report. Only once per session."""
        if self.finished:
            raise SessionFinishedError("session already finished")
        self.report = build_report(
            self.transcript,
            self.reference_text,
            live_errors=self.events,
            strategy=self.diff_strategy,
        )
        return self.report
