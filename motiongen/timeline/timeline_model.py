"""Timeline view-model: track geometry and drag gestures mapped onto CSS edits."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Literal, Optional, Tuple, Union

from motiongen.timeline.css_mutator import format_seconds, set_property
from motiongen.timeline.track_parser import Track
from motiongen.utils.config import settings

if TYPE_CHECKING:
    from motiongen.editor_session import EditorSession

logger = logging.getLogger(__name__)

DragKind = Literal["move", "resize"]
MIN_BAR_WIDTH_PX = 10.0
# Smallest duration that survives two-decimal formatting.
MIN_WRITTEN_DURATION = 0.01
AUTO_SCROLL_MARGIN_PX = 100.0


class GestureInProgressError(RuntimeError):
    """Raised when a drag starts while another one is still active."""


class NoActiveGestureError(RuntimeError):
    """Raised when a pointer move or release arrives without a drag in progress."""


@dataclass(frozen=True)
class TrackGeometry:
    selector: str
    name: str
    left_px: float
    width_px: float
    start: float
    end: float


@dataclass(frozen=True)
class DragGesture:
    """Baseline captured once at pointer-down; deltas are always computed from it."""

    selector: str
    kind: DragKind
    start_x: float
    original_delay: float
    original_duration: float


class TimelineViewModel:
    def __init__(
        self,
        session: "EditorSession",
        pixels_per_second: Optional[float] = None,
        min_duration: Optional[float] = None,
    ) -> None:
        self._session = session
        self.pixels_per_second = pixels_per_second or settings.timeline_pixels_per_second
        configured = min_duration if min_duration is not None else settings.min_track_duration
        self.min_duration = max(MIN_WRITTEN_DURATION, configured)
        self.active_gesture: Optional[DragGesture] = None

    def seconds_to_px(self, seconds: float) -> float:
        return seconds * self.pixels_per_second

    def px_to_seconds(self, px: float) -> float:
        return px / self.pixels_per_second

    def track_geometry(self) -> List[TrackGeometry]:
        return [
            TrackGeometry(
                selector=track.selector,
                name=track.name,
                left_px=self.seconds_to_px(track.delay),
                width_px=max(MIN_BAR_WIDTH_PX, self.seconds_to_px(track.duration)),
                start=track.delay,
                end=track.end,
            )
            for track in self._session.tracks
        ]

    def time_markers(self) -> List[int]:
        """Whole-second ruler labels covering the scene."""
        return list(range(int(math.ceil(self._session.scene_duration)) + 1))

    def _find_track(self, track: Union[int, str]) -> Track:
        tracks = self._session.tracks
        if isinstance(track, int):
            if 0 <= track < len(tracks):
                return tracks[track]
            raise LookupError(f"No track at index {track}")
        # the last rule for a selector is the one edits land in
        for candidate in reversed(tracks):
            if candidate.selector == track:
                return candidate
        raise LookupError(f"No animated track for selector {track!r}")

    def begin_drag(self, track: Union[int, str], kind: DragKind, pointer_x: float) -> DragGesture:
        if self.active_gesture is not None:
            raise GestureInProgressError(f"Drag already active on {self.active_gesture.selector!r}")
        if kind not in ("move", "resize"):
            raise ValueError(f"Unknown drag kind: {kind}")
        target = self._find_track(track)
        self.active_gesture = DragGesture(
            selector=target.selector,
            kind=kind,
            start_x=pointer_x,
            original_delay=target.delay,
            original_duration=target.duration,
        )
        logger.debug("Begin %s drag on %s", kind, target.selector)
        return self.active_gesture

    def drag_to(self, pointer_x: float) -> Tuple[float, float]:
        """Apply the gesture at ``pointer_x``; returns the written ``(duration, delay)``."""
        gesture = self.active_gesture
        if gesture is None:
            raise NoActiveGestureError("No drag in progress")

        delta = self.px_to_seconds(pointer_x - gesture.start_x)
        duration = gesture.original_duration
        delay = gesture.original_delay
        # Only the dragged property is rewritten; the other keeps its exact text.
        if gesture.kind == "move":
            delay = max(0.0, round(gesture.original_delay + delta, 2))
            prop, value = "animation-delay", delay
        else:
            duration = max(self.min_duration, round(gesture.original_duration + delta, 2))
            prop, value = "animation-duration", duration

        css = set_property(self._session.code.css, gesture.selector, prop, format_seconds(value))
        self._session.update_css(css)
        return duration, delay

    def end_drag(self) -> Optional[DragGesture]:
        gesture, self.active_gesture = self.active_gesture, None
        return gesture

    def seek_to_pixel(self, offset_px: float) -> float:
        """Move the playhead to a pixel offset; always pauses playback."""
        duration = max(0.0, self._session.scene_duration)
        time = min(duration, max(0.0, self.px_to_seconds(offset_px)))
        self._session.playback.seek(time)
        return time

    def playhead_px(self) -> float:
        return self.seconds_to_px(self._session.playback.current_time)

    def auto_scroll_target(
        self, current_time: float, scroll_left: float, container_width: float
    ) -> Optional[float]:
        """New scroll offset that centers the playhead, or None while it is visible."""
        playhead = self.seconds_to_px(current_time)
        if playhead < scroll_left or playhead > scroll_left + container_width - AUTO_SCROLL_MARGIN_PX:
            return max(0.0, playhead - container_width / 2)
        return None
