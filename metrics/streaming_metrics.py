"""
Recitation session observability metrics.

Thread-safe counters and latency samples for the session endpoints and /ws/recite.
Exposed via GET /metrics/streaming (JSON snapshot).
"""

import threading
from collections import deque
from typing import Any, Dict, Iterable

from core.models import ERROR_TYPES

# ----- Shared state (module-level for singleton behavior) -----
_lock = threading.Lock()
_active_sessions = 0
_chunks_processed = 0
_reports_produced = 0
_suggestion_fallbacks = 0
_error_events = {kind: 0 for kind in ERROR_TYPES}
_latency_samples: deque = deque(maxlen=1000)  # last N chunk latencies for avg/p95


def record_session_open() -> None:
    """Call when a recitation session starts (HTTP or WebSocket)."""
    with _lock:
        global _active_sessions
        _active_sessions += 1


def record_session_close() -> None:
    """Call when a session finishes or is discarded."""
    with _lock:
        global _active_sessions
        _active_sessions = max(0, _active_sessions - 1)


def record_chunk(latency_ms: float, events: Iterable[Any] = ()) -> None:
    """Record one aligned chunk: its processing latency and the events it emitted."""
    with _lock:
        global _chunks_processed
        _chunks_processed += 1
        _latency_samples.append(latency_ms)
        for event in events:
            if event.type in _error_events:
                _error_events[event.type] += 1


def record_report() -> None:
    with _lock:
        global _reports_produced
        _reports_produced += 1


def record_suggestion_fallback() -> None:
    """Call when suggestions came from the fixed list instead of the model."""
    with _lock:
        global _suggestion_fallbacks
        _suggestion_fallbacks += 1


def reset() -> None:
    """Zero all counters (tests)."""
    global _active_sessions, _chunks_processed, _reports_produced, _suggestion_fallbacks
    with _lock:
        _active_sessions = 0
        _chunks_processed = 0
        _reports_produced = 0
        _suggestion_fallbacks = 0
        for kind in _error_events:
            _error_events[kind] = 0
        _latency_samples.clear()


def get_snapshot() -> Dict[str, Any]:
    """
    Return a JSON-serializable snapshot of session metrics.
    Used by GET /metrics/streaming.
    """
    with _lock:
        samples = list(_latency_samples)
        snapshot = {
            "active_sessions": _active_sessions,
            "chunks_processed": _chunks_processed,
            "reports_produced": _reports_produced,
            "suggestion_fallbacks": _suggestion_fallbacks,
            "error_events": dict(_error_events),
        }
    n = len(samples)
    if n == 0:
        avg_latency_ms = None
        p95_latency_ms = None
    else:
        avg_latency_ms = round(sum(samples) / n, 2)
        sorted_s = sorted(samples)
        idx = max(0, int(0.95 * n) - 1)
        p95_latency_ms = round(sorted_s[idx], 2)
    snapshot.update({
        "avg_latency_ms": avg_latency_ms,
        "p95_latency_ms": p95_latency_ms,
        "latency_sample_count": n,
    })
    return snapshot
