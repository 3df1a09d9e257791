"""
WebSocket handler for /ws/recite.

- Reference chosen by ?surah=N, or by a first {"type": "start", "fullText": ...} message.
- {"type": "final", "text": ...}: one finalized transcript chunk → aligned → "progress" reply.
- {"type": "interim", ...}: ignored; only finalized text reaches the aligner.
- {"type": "restart"}: cursor, errors and transcript reset.
- {"type": "end"} (or plain "end" / "stop" / "final"): full comparison → "final_result".
Messages of one connection are handled one at a time, in arrival order.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from core.models import CursorOutOfRangeError, SessionFinishedError, SessionReport
from streaming.session_store import SessionNotFoundError, SessionStore

logger = logging.getLogger(__name__)

END_WORDS = ("end", "stop", "final")


def _parse_message(raw: str) -> Dict[str, Any]:
    raw = raw.strip()
    if raw.lower() in END_WORDS:
        return {"type": "end"}
    try:
        msg = json.loads(raw)
    except ValueError:
        # Bare text frames are treated as finalized chunks
        return {"type": "final", "text": raw}
    if not isinstance(msg, dict):
        return {"type": "invalid"}
    return msg


def build_ws_recite_handler(
    store: SessionStore,
    get_reference_text: Callable[[int], str],
    make_final_result: Callable[[SessionReport], Dict[str, Any]],
    idle_timeout: float = 300.0,
) -> Callable:
    """
    Build the async WebSocket handler for /ws/recite.

    Args:
        store: SessionStore holding the connection's session.
        get_reference_text: Callable(surah_number) -> reference text; may raise.
        make_final_result: SessionReport -> JSON dict (report + suggestions); may block.
        idle_timeout: Seconds without a message before the socket is closed.

    Returns:
        Async function (websocket: WebSocket) -> None for use with FastAPI.
    """

    async def handle_ws_recite(websocket: WebSocket) -> None:
        surah_param = websocket.query_params.get("surah")
        reference_text = ""
        surah: Optional[int] = None
        if surah_param:
            try:
                surah = int(surah_param)
                loop = asyncio.get_running_loop()
                reference_text = await loop.run_in_executor(None, get_reference_text, surah)
            except Exception as e:
                logger.warning("WS reference lookup failed for surah %s: %s", surah_param, e)
                await websocket.close(code=1008, reason=f"Surah {surah_param} not available")
                return

        await websocket.accept()
        session_id: Optional[str] = None
        if reference_text:
            session_id, session = store.create(reference_text, surah=surah)
            await websocket.send_json({"type": "ready", "sessionId": session_id, "totalWords": session.total_words})

        async def send_error(message: str) -> None:
            await websocket.send_json({"type": "error", "message": message})

        try:
            while True:
                try:
                    raw = await asyncio.wait_for(websocket.receive_text(), timeout=idle_timeout)
                except asyncio.TimeoutError:
                    await websocket.close(code=1000, reason="Idle timeout")
                    break
                msg = _parse_message(raw)
                kind = msg.get("type")
                if session_id is not None:
                    store.touch(session_id)

                if kind == "start":
                    if session_id is not None:
                        await send_error("Session already started")
                        continue
                    full_text = msg.get("fullText") or ""
                    if not full_text.strip():
                        await send_error("Missing fullText")
                        continue
                    session_id, session = store.create(full_text)
                    await websocket.send_json({"type": "ready", "sessionId": session_id, "totalWords": session.total_words})
                    continue

                if kind == "interim":
                    continue

                if session_id is None:
                    await send_error("No reference text; send a start message first")
                    continue

                if kind == "final":
                    try:
                        result = store.feed(session_id, msg.get("text") or "")
                        session = store.get(session_id)
                    except SessionNotFoundError as e:
                        session_id = None
                        await send_error(f"Session no longer available: {e}")
                        continue
                    except (CursorOutOfRangeError, SessionFinishedError) as e:
                        await send_error(str(e))
                        continue
                    await websocket.send_json({
                        "type": "progress",
                        "errors": [e.to_dict() for e in result.events],
                        "newPosition": result.new_cursor,
                        "progress": round(session.progress, 1),
                        "totalWords": session.total_words,
                    })
                elif kind == "restart":
                    try:
                        store.restart(session_id)
                    except SessionNotFoundError as e:
                        session_id = None
                        await send_error(f"Session no longer available: {e}")
                        continue
                    except SessionFinishedError as e:
                        await send_error(f"Cannot restart: {e}")
                        continue
                    await websocket.send_json({"type": "restarted", "newPosition": 0})
                elif kind == "end":
                    try:
                        report = store.finish(session_id)
                    except (SessionFinishedError, SessionNotFoundError) as e:
                        # Expired or already finished; a new start message is needed
                        session_id = None
                        await send_error(f"Session no longer available: {e}")
                        continue
                    session_id = None
                    loop = asyncio.get_running_loop()
                    final_result = await loop.run_in_executor(None, make_final_result, report)
                    await websocket.send_json({"type": "final_result", "result": final_result})
                    await websocket.close(code=1000)
                    break
                else:
                    await send_error(f"Unknown message type: {kind!r}")
        except WebSocketDisconnect:
            pass
        finally:
            if session_id is not None:
                store.discard(session_id, missing_ok=True)

    return handle_ws_recite
