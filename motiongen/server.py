"""REST API server."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, AsyncIterator, Dict, Generator, Optional, Tuple

from fastapi import Depends, FastAPI
from fastapi.responses import HTMLResponse, JSONResponse, Response
from sqlalchemy.orm import Session as DbSession

from motiongen.db import Base, SessionLocal, engine
from motiongen.db_models import EditorSessionRecord
from motiongen.editor_session import EditorSession
from motiongen.events import event_from_message
from motiongen.preview import build_preview_document
from motiongen.schemas import (
    CodeUpdateRequest,
    DragBeginRequest,
    DragMoveRequest,
    DragResponse,
    MessageCreate,
    MessageReplyResponse,
    MessageResponse,
    PlaybackResponse,
    RenderApiRequest,
    SeekRequest,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionDetailResponse,
    TimelineResponse,
    TrackGeometryResponse,
    TrackResponse,
)
from motiongen.services.assistant_service import AssistantError, AssistantService
from motiongen.services.export_service import (
    RESOLUTION_PRESETS,
    ExportError,
    RenderRequest,
    get_renderer,
    render_video,
)
from motiongen.services.session_service import (
    SessionRegistry,
    create_session,
    fail_exchange,
    finish_exchange,
    get_session,
    list_messages,
    save_code,
    start_exchange,
)
from motiongen.timeline.scene_duration import calculate_animation_duration
from motiongen.timeline.timeline_model import GestureInProgressError, NoActiveGestureError
from motiongen.utils.config import settings

logger = logging.getLogger(__name__)

registry = SessionRegistry()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    registry.close_all()


app = FastAPI(title="MotionGen Editor API", lifespan=lifespan)


@app.get("/health")
async def health():
    return {"status": "ok"}


def get_db() -> Generator[DbSession, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_registry() -> SessionRegistry:
    return registry


def get_assistant() -> AssistantService:
    return AssistantService()


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Session not found"})


def _open(
    db: DbSession, sessions: SessionRegistry, session_id: str
) -> Optional[Tuple[EditorSessionRecord, EditorSession]]:
    record = get_session(db, session_id)
    if record is None:
        return None
    return record, sessions.open(record)


def _playback(live: EditorSession) -> PlaybackResponse:
    return PlaybackResponse(
        current_time=live.playback.current_time,
        is_playing=live.playback.is_playing,
        scene_duration=live.scene_duration,
    )


def _detail(db: DbSession, record: EditorSessionRecord, live: EditorSession) -> SessionDetailResponse:
    return SessionDetailResponse(
        session_id=record.id,
        title=record.title,
        orientation=record.orientation,
        html=live.code.html,
        css=live.code.css,
        tracks=[
            TrackResponse(selector=t.selector, name=t.name, duration=t.duration, delay=t.delay, end=t.end)
            for t in live.tracks
        ],
        scene_duration=live.scene_duration,
        playback=_playback(live),
        messages=[
            MessageResponse(id=m.id, role=m.role, content=m.content, created_at=m.created_at)
            for m in list_messages(db, record.id)
        ],
    )


@app.post("/api/sessions", response_model=SessionCreateResponse)
def create_session_api(payload: Optional[SessionCreateRequest] = None, db: DbSession = Depends(get_db)):
    payload = payload or SessionCreateRequest()
    record = create_session(db, title=payload.title, orientation=payload.orientation)
    return SessionCreateResponse(session_id=record.id, title=record.title)


@app.get("/api/sessions/{session_id}", response_model=SessionDetailResponse)
async def session_detail(
    session_id: str,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    return _detail(db, *opened)


@app.put("/api/sessions/{session_id}/code", response_model=SessionDetailResponse)
async def update_code_api(
    session_id: str,
    payload: CodeUpdateRequest,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    if payload.html is None and payload.css is None:
        return JSONResponse(status_code=400, content={"error": "Provide html or css"})
    record, live = opened
    live.replace_code(html=payload.html, css=payload.css)
    save_code(db, record, live.code)
    return _detail(db, record, live)


@app.post("/api/sessions/{session_id}/messages", response_model=MessageReplyResponse)
async def message_api(
    session_id: str,
    payload: MessageCreate,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
    assistant: AssistantService = Depends(get_assistant),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    content = payload.content.strip()
    if not content:
        return JSONResponse(status_code=400, content={"error": "Missing content"})
    record, live = opened
    history = start_exchange(db, record, content)
    # The completion call blocks; the reply is applied back on the loop.
    try:
        reply = await asyncio.to_thread(assistant.send, content, live.code, history)
    except AssistantError as exc:
        result = fail_exchange(db, record, exc)
    else:
        result = finish_exchange(db, record, live, reply)
    body = MessageReplyResponse(html=live.code.html, css=live.code.css, **result)
    if result["error"]:
        return JSONResponse(status_code=502, content=body.model_dump())
    return body


@app.get("/api/sessions/{session_id}/timeline", response_model=TimelineResponse)
async def timeline_api(
    session_id: str,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    _, live = opened
    timeline = live.timeline
    return TimelineResponse(
        tracks=[TrackGeometryResponse(**asdict(g)) for g in timeline.track_geometry()],
        markers=timeline.time_markers(),
        scene_duration=live.scene_duration,
        pixels_per_second=timeline.pixels_per_second,
        playhead_px=timeline.playhead_px(),
    )


@app.post("/api/sessions/{session_id}/timeline/drag", response_model=DragResponse)
async def drag_begin_api(
    session_id: str,
    payload: DragBeginRequest,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    target: Any = payload.selector if payload.selector is not None else payload.index
    if target is None:
        return JSONResponse(status_code=400, content={"error": "Provide selector or index"})
    _, live = opened
    try:
        gesture = live.timeline.begin_drag(target, payload.kind, payload.pointer_x)
    except GestureInProgressError as exc:
        return JSONResponse(status_code=409, content={"error": str(exc)})
    except LookupError as exc:
        return JSONResponse(status_code=404, content={"error": str(exc)})
    return DragResponse(
        selector=gesture.selector,
        kind=gesture.kind,
        duration=gesture.original_duration,
        delay=gesture.original_delay,
    )


@app.patch("/api/sessions/{session_id}/timeline/drag", response_model=DragResponse)
async def drag_move_api(
    session_id: str,
    payload: DragMoveRequest,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    record, live = opened
    try:
        duration, delay = live.timeline.drag_to(payload.pointer_x)
    except NoActiveGestureError as exc:
        return JSONResponse(status_code=409, content={"error": str(exc)})
    save_code(db, record, live.code)
    gesture = live.timeline.active_gesture
    return DragResponse(selector=gesture.selector, kind=gesture.kind, duration=duration, delay=delay)


@app.delete("/api/sessions/{session_id}/timeline/drag")
async def drag_end_api(
    session_id: str,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    _, live = opened
    gesture = live.timeline.end_drag()
    return {"ended": gesture is not None, "selector": gesture.selector if gesture else None}


# Playback handlers must run on the event loop that owns the frame task.
@app.post("/api/sessions/{session_id}/playback/play", response_model=PlaybackResponse)
async def play_api(
    session_id: str,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    _, live = opened
    live.playback.play()
    return _playback(live)


@app.post("/api/sessions/{session_id}/playback/pause", response_model=PlaybackResponse)
async def pause_api(
    session_id: str,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    _, live = opened
    live.playback.pause()
    return _playback(live)


@app.post("/api/sessions/{session_id}/playback/seek", response_model=PlaybackResponse)
async def seek_api(
    session_id: str,
    payload: SeekRequest,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    _, live = opened
    if payload.offset_px is not None:
        live.timeline.seek_to_pixel(payload.offset_px)
    elif payload.time is not None:
        live.playback.seek(payload.time)
    else:
        return JSONResponse(status_code=400, content={"error": "Provide time or offset_px"})
    return _playback(live)


@app.post("/api/sessions/{session_id}/events", response_model=SessionDetailResponse)
async def preview_event_api(
    session_id: str,
    payload: Dict[str, Any],
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    try:
        event = event_from_message(payload)
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    record, live = opened
    live.dispatch(event)
    save_code(db, record, live.code)
    return _detail(db, record, live)


@app.get("/api/sessions/{session_id}/preview", response_class=HTMLResponse)
async def preview_api(
    session_id: str,
    db: DbSession = Depends(get_db),
    sessions: SessionRegistry = Depends(get_registry),
):
    opened = _open(db, sessions, session_id)
    if opened is None:
        return _not_found()
    _, live = opened
    document = build_preview_document(
        live.code,
        is_playing=live.playback.is_playing,
        current_time=live.playback.current_time,
        tracks=live.tracks,
    )
    return HTMLResponse(document)


@app.post("/api/render")
async def render_api(payload: RenderApiRequest, renderer=Depends(get_renderer)):
    if not payload.html or not payload.css:
        return JSONResponse(status_code=400, content={"error": "Missing html or css"})
    preset_width, preset_height = RESOLUTION_PRESETS[payload.orientation]
    request = RenderRequest(
        html=payload.html,
        css=payload.css,
        duration_seconds=payload.duration or calculate_animation_duration(payload.css),
        fps=payload.fps or settings.export_fps,
        width=payload.width or preset_width,
        height=payload.height or preset_height,
        mode=payload.mode,
    )
    try:
        data = await render_video(request, renderer=renderer)
    except ExportError as exc:
        logger.error("Export failed: %s", exc)
        return JSONResponse(status_code=502, content={"error": str(exc)})
    return Response(
        content=data,
        media_type="video/webm",
        headers={"Content-Disposition": 'attachment; filename="animation.webm"'},
    )
