"""
Quran recitation checking API.
Live: finalized transcript chunks are aligned against the surah as they arrive.
Final: the whole transcript is compared once, with a report and suggestions.
"""
import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

import config
import metrics.streaming_metrics as streaming_metrics
from core.alignment import advance
from core.comparison import build_report
from core.models import CursorOutOfRangeError, ErrorEvent, SessionFinishedError, SessionReport
from core.normalization import tokenize
from integrations.quran_api import QuranApiClient, ReferenceFetchError
from integrations.suggestions import SuggestionGenerator, is_fallback
from streaming.session_store import SessionNotFoundError, SessionStore
from streaming.websocket_server import build_ws_recite_handler

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Quran Recitation Checker API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

quran_client = QuranApiClient(base_url=config.QURAN_API_URL, timeout=config.QURAN_API_TIMEOUT)
suggestion_generator = SuggestionGenerator(
    api_key=config.GOOGLE_API_KEY,
    model_name=config.GEMINI_MODEL,
    max_suggestions=config.MAX_SUGGESTIONS,
)
session_store = SessionStore(
    match_threshold=config.get_match_threshold(),
    diff_strategy=config.get_diff_strategy(),
    ttl_seconds=config.SESSION_TTL_SECONDS,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CheckRecitationRequest(_CamelModel):
    spoken_text: str = Field("", alias="spokenText")
    full_text: str = Field("", alias="fullText")
    current_position: int = Field(0, alias="currentPosition")


class FinalAnalysisRequest(_CamelModel):
    transcript: str = ""
    full_text: str = Field("", alias="fullText")
    realtime_errors: List[Dict[str, Any]] = Field(default_factory=list, alias="realtimeErrors")


class CreateSessionRequest(_CamelModel):
    surah_id: Optional[int] = Field(None, alias="surahId")
    full_text: str = Field("", alias="fullText")


class ChunkRequest(BaseModel):
    text: str = ""


def _get_surah(surah_id: int):
    try:
        return quran_client.get_surah(surah_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferenceFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))


def _final_result(report: SessionReport) -> Dict[str, Any]:
    """Report + suggestions for the results page."""
    suggestions = suggestion_generator.generate(report.accuracy, report.error_counts)
    from_model = not is_fallback(suggestions)
    if not from_model:
        streaming_metrics.record_suggestion_fallback()
    result = report.to_dict(suggestions=suggestions)
    result["processing_info"] = {
        "normalization_applied": True,
        "ai_suggestions": from_model,
        "match_threshold": session_store.match_threshold,
    }
    return result


@app.get("/")
def health_check():
    return {
        "status": "ok",
        "message": "Quran Recitation Checker API is running",
        "active_sessions": len(session_store),
    }


@app.get("/surahs")
def list_surahs():
    try:
        return {"surahs": quran_client.list_surahs()}
    except ReferenceFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/surahs/{surah_id}")
def get_surah(surah_id: int):
    return _get_surah(surah_id).to_dict()


@app.post("/check-recitation")
def check_recitation(body: CheckRecitationRequest):
    """Stateless live check: align one finalized chunk from `currentPosition`."""
    try:
        result = advance(
            body.spoken_text,
            body.current_position,
            tokenize(body.full_text),
            match_threshold=session_store.match_threshold,
        )
    except CursorOutOfRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "errors": [e.to_dict() for e in result.events],
        "newPosition": result.new_cursor,
    }


@app.post("/final-analysis")
def final_analysis(body: FinalAnalysisRequest):
    if not body.transcript.strip() or not body.full_text.strip():
        raise HTTPException(status_code=400, detail="Missing transcript or surah text")
    try:
        live_errors = [ErrorEvent.from_dict(item) for item in body.realtime_errors]
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid realtimeErrors: {e}")
    report = build_report(
        body.transcript,
        body.full_text,
        live_errors=live_errors,
        strategy=session_store.diff_strategy,
    )
    streaming_metrics.record_report()
    return _final_result(report)


# ----- Stateful sessions: the server owns cursor and accumulated errors -----
@app.post("/sessions", status_code=201)
def create_session(body: CreateSessionRequest):
    surah_number = None
    if body.surah_id is not None:
        reference_text = _get_surah(body.surah_id).full_text
        surah_number = body.surah_id
    elif body.full_text.strip():
        reference_text = body.full_text
    else:
        raise HTTPException(status_code=400, detail="Provide surahId or fullText")
    session_id, session = session_store.create(reference_text, surah=surah_number)
    return {"sessionId": session_id, "totalWords": session.total_words}


@app.post("/sessions/{session_id}/chunks")
def add_chunk(session_id: str, body: ChunkRequest):
    try:
        result = session_store.feed(session_id, body.text)
        session = session_store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    except SessionFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {
        "errors": [e.to_dict() for e in result.events],
        "newPosition": result.new_cursor,
        "progress": round(session.progress, 1),
        "totalErrors": len(session.events),
    }


@app.post("/sessions/{session_id}/restart")
def restart_session(session_id: str):
    try:
        session = session_store.restart(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    except SessionFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"sessionId": session_id, "newPosition": session.cursor, "totalWords": session.total_words}


@app.post("/sessions/{session_id}/finish")
def finish_session(session_id: str):
    try:
        report = session_store.finish(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    except SessionFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _final_result(report)


@app.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str):
    try:
        session_store.discard(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


_ws_recite_handler = build_ws_recite_handler(
    store=session_store,
    get_reference_text=lambda n: quran_client.get_surah(n).full_text,
    make_final_result=lambda report: _final_result(report),
    idle_timeout=config.WS_IDLE_TIMEOUT,
)
app.websocket("/ws/recite")(_ws_recite_handler)


@app.get("/metrics/streaming", include_in_schema=False)
def metrics_streaming():
    """JSON snapshot: active_sessions, chunks_processed, error_events, avg/p95 latency."""
    return streaming_metrics.get_snapshot()


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
