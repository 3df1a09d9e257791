"""
Live recitation layer.

- session_store: per-session state and locking for the HTTP session endpoints.
- websocket_server: WebSocket handler for /ws/recite (import separately to avoid pulling FastAPI).
"""

from streaming.session_store import SessionNotFoundError, SessionStore

__all__ = [
    "SessionNotFoundError",
    "SessionStore",
]
