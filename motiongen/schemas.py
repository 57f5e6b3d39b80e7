"""Pydantic schemas for API."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SessionCreateRequest(BaseModel):
    title: Optional[str] = None
    orientation: Literal["landscape", "portrait"] = "landscape"


class SessionCreateResponse(BaseModel):
    session_id: UUID
    title: str


class MessageCreate(BaseModel):
    content: str = ""


class MessageResponse(BaseModel):
    id: UUID
    role: str
    content: str
    created_at: datetime


class MessageReplyResponse(BaseModel):
    role: str
    content: str
    code_updated: bool
    error: Optional[str] = None
    html: str
    css: str


class CodeUpdateRequest(BaseModel):
    html: Optional[str] = None
    css: Optional[str] = None


class TrackResponse(BaseModel):
    selector: str
    name: str
    duration: float
    delay: float
    end: float


class PlaybackResponse(BaseModel):
    current_time: float
    is_playing: bool
    scene_duration: float


class SessionDetailResponse(BaseModel):
    session_id: UUID
    title: str
    orientation: str
    html: str
    css: str
    tracks: List[TrackResponse]
    scene_duration: float
    playback: PlaybackResponse
    messages: List[MessageResponse]


class TrackGeometryResponse(BaseModel):
    selector: str
    name: str
    left_px: float
    width_px: float
    start: float
    end: float


class TimelineResponse(BaseModel):
    tracks: List[TrackGeometryResponse]
    markers: List[int]
    scene_duration: float
    pixels_per_second: float
    playhead_px: float


class DragBeginRequest(BaseModel):
    selector: Optional[str] = None
    index: Optional[int] = None
    kind: Literal["move", "resize"]
    pointer_x: float


class DragMoveRequest(BaseModel):
    pointer_x: float


class DragResponse(BaseModel):
    selector: str
    kind: str
    duration: float
    delay: float


class SeekRequest(BaseModel):
    time: Optional[float] = None
    offset_px: Optional[float] = None


class RenderApiRequest(BaseModel):
    html: Optional[str] = None
    css: Optional[str] = None
    duration: Optional[float] = Field(default=None, gt=0)
    fps: Optional[int] = Field(default=None, ge=1, le=120)
    width: Optional[int] = None
    height: Optional[int] = None
    orientation: Literal["landscape", "portrait"] = "landscape"
    mode: Literal["frames", "record"] = "frames"
