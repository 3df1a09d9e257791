"""
In-process store of live recitation sessions for the HTTP and WebSocket layers.

Each session has its own lock so chunks for one session are aligned one at
a time, in arrival order, while different sessions proceed independently.
Idle sessions expire after `ttl_seconds`.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from core.comparison import POSITIONAL
from core.models import AdvanceResult, SessionReport
from core.scoring import MATCH_THRESHOLD
from core.session import RecitationSession
import metrics.streaming_metrics as streaming_metrics

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """No live session with this id (never created, finished, or expired)."""


@dataclass
class _Entry:
    session: RecitationSession
    surah: Optional[int] = None
    lock: threading.Lock = field(default_factory=threading.Lock)
    touched_at: float = field(default_factory=time.monotonic)


class SessionStore:
    def __init__(
        self,
        match_threshold: float = MATCH_THRESHOLD,
        diff_strategy: str = POSITIONAL,
        ttl_seconds: float = 3600.0,
    ):
        self.match_threshold = match_threshold
        self.diff_strategy = diff_strategy
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def create(self, reference_text: str, surah: Optional[int] = None) -> Tuple[str, RecitationSession]:
        self.purge_expired()
        session = RecitationSession(
            reference_text,
            match_threshold=self.match_threshold,
            diff_strategy=self.diff_strategy,
        )
        session_id = uuid.uuid4().hex
        with self._lock:
            self._entries[session_id] = _Entry(session=session, surah=surah)
        streaming_metrics.record_session_open()
        logger.info("Session %s started (%d reference words)", session_id, session.total_words)
        return session_id, session

    def get(self, session_id: str) -> RecitationSession:
        return self._entry(session_id).session

    def feed(self, session_id: str, chunk: str) -> AdvanceResult:
        entry = self._entry(session_id)
        with entry.lock:
            t0 = time.perf_counter()
            result = entry.session.feed(chunk)
            entry.touched_at = time.monotonic()
        streaming_metrics.record_chunk((time.perf_counter() - t0) * 1000, result.events)
        return result

    def restart(self, session_id: str) -> RecitationSession:
        entry = self._entry(session_id)
        with entry.lock:
            entry.session.restart()
            entry.touched_at = time.monotonic()
        return entry.session

    def finish(self, session_id: str) -> SessionReport:
        """Build the report and drop the session."""
        entry = self._entry(session_id)
        with entry.lock:
            report = entry.session.finish()
        self._remove(session_id)
        streaming_metrics.record_report()
        return report

    def touch(self, session_id: str) -> None:
        """Mark the session active so it does not expire; unknown ids are ignored."""
        with self._lock:
            entry = self._entries.get(session_id)
        if entry is not None:
            entry.touched_at = time.monotonic()

    def discard(self, session_id: str, missing_ok: bool = False) -> None:
        if not missing_ok:
            self._entry(session_id)
        self._remove(session_id)

    def purge_expired(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [sid for sid, e in self._entries.items() if now - e.touched_at > self.ttl_seconds]
        for sid in expired:
            logger.info("Session %s expired", sid)
            self._remove(sid)
        return len(expired)

    def _entry(self, session_id: str) -> _Entry:
        with self._lock:
            entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError(session_id)
        return entry

    def _remove(self, session_id: str) -> None:
        with self._lock:
            removed = self._entries.pop(session_id, None)
        if removed is not None:
            streaming_metrics.record_session_close()
