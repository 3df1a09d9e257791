"""
Observability for recitation sessions.
"""

from metrics.streaming_metrics import (
    get_snapshot,
    record_chunk,
    record_report,
    record_session_close,
    record_session_open,
    record_suggestion_fallback,
    reset,
)

__all__ = [
    "get_snapshot",
    "record_chunk",
    "record_report",
    "record_session_close",
    "record_session_open",
    "record_suggestion_fallback",
    "reset",
]
