"""Live editing session: the single owner of scene code and playback state."""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from motiongen.events import ElementDragEnd, EventChannel, PreviewEvent, ScrubTo
from motiongen.models.code_state import CodeState, Orientation, initial_code_state
from motiongen.timeline.css_mutator import apply_element_position
from motiongen.timeline.playback import PlaybackDriver
from motiongen.timeline.scene_duration import scene_duration
from motiongen.timeline.timeline_model import TimelineViewModel
from motiongen.timeline.track_parser import Track, parse_tracks

logger = logging.getLogger(__name__)


class EditorSession:
    """Holds ``CodeState`` and wires the timeline, playback and preview channel to it.

    Tracks and the scene duration are recomputed from the current CSS on every
    access; nothing derived is cached across edits.
    """

    def __init__(
        self,
        session_id: str,
        code: Optional[CodeState] = None,
        orientation: Orientation = "landscape",
        clock: Callable[[], float] = time.monotonic,
        default_duration: Optional[float] = None,
    ) -> None:
        self.session_id = session_id
        self.orientation: Orientation = orientation
        self._code = code or initial_code_state()
        self._default_duration = default_duration
        self._code_listeners: List[Callable[[CodeState], None]] = []
        self.channel = EventChannel()
        self.playback = PlaybackDriver(self, clock=clock)
        self.timeline = TimelineViewModel(self)
        self.closed = False
        self.channel.subscribe(ScrubTo, self._on_scrub)
        self.channel.subscribe(ElementDragEnd, self._on_element_drag_end)

    @property
    def code(self) -> CodeState:
        return self._code

    @property
    def tracks(self) -> List[Track]:
        return parse_tracks(self._code.css)

    @property
    def scene_duration(self) -> float:
        return scene_duration(self.tracks, default=self._default_duration)

    def on_code_change(self, listener: Callable[[CodeState], None]) -> None:
        self._code_listeners.append(listener)

    def replace_code(self, html: Optional[str] = None, css: Optional[str] = None) -> CodeState:
        """Swap in new code; omitted parts keep their current value."""
        new_code = self._code.replace(html=html, css=css)
        if new_code == self._code:
            return self._code
        self._code = new_code
        self.playback.clamp_to_scene()
        for listener in list(self._code_listeners):
            listener(new_code)
        return new_code

    def update_css(self, css: str) -> CodeState:
        return self.replace_code(css=css)

    def apply_assistant_update(self, html: Optional[str], css: Optional[str]) -> CodeState:
        """Take the assistant's replacement code and replay the scene from the start."""
        code = self.replace_code(html=html, css=css)
        self.playback.restart()
        return code

    def apply_element_drag(self, selector: str, x_percent: float, y_percent: float) -> CodeState:
        css = apply_element_position(self._code.css, selector, x_percent, y_percent)
        return self.update_css(css)

    def dispatch(self, event: PreviewEvent) -> None:
        self.channel.publish(event)

    def _on_scrub(self, event: ScrubTo) -> None:
        self.playback.seek(event.time)

    def _on_element_drag_end(self, event: ElementDragEnd) -> None:
        logger.debug("Element %s dropped at %.2f%%, %.2f%%", event.selector, event.x_percent, event.y_percent)
        self.apply_element_drag(event.selector, event.x_percent, event.y_percent)

    def close(self) -> None:
        """Tear down: stop the frame task and drop subscribers. Idempotent."""
        self.playback.stop()
        self.timeline.end_drag()
        self.channel.clear()
        self._code_listeners.clear()
        self.closed = True
