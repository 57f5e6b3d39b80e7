"""Playback driver and scrub overrides for the live preview."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from motiongen.timeline.track_parser import Track
from motiongen.utils.config import settings

if TYPE_CHECKING:
    from motiongen.editor_session import EditorSession

logger = logging.getLogger(__name__)


@dataclass
class PlaybackState:
    current_time: float = 0.0
    is_playing: bool = False


def scrub_delays(tracks: Iterable[Track], current_time: float) -> Dict[str, float]:
    """Negative-delay override per selector that freezes its animation at ``current_time``."""
    return {track.selector: track.delay - current_time for track in tracks}


def render_scrub_css(tracks: Iterable[Track], current_time: float) -> str:
    rules = [
        f"{selector} {{ animation-delay: {delay:.3f}s !important; animation-play-state: paused !important; }}"
        for selector, delay in scrub_delays(tracks, current_time).items()
    ]
    return "\n".join(rules)


class PlaybackDriver:
    """Advances the session's current time once per frame while playing.

    Playback runs once and halts at the scene end; it never loops. At most one
    frame task exists per driver.
    """

    def __init__(
        self,
        session: "EditorSession",
        clock: Callable[[], float] = time.monotonic,
        frame_interval: Optional[float] = None,
    ) -> None:
        self._session = session
        self._clock = clock
        self._frame_interval = frame_interval or settings.playback_frame_interval
        self._last_frame: Optional[float] = None
        self._task: Optional[asyncio.Task] = None
        self._finished_listeners: List[Callable[[float], None]] = []
        self.state = PlaybackState()

    @property
    def current_time(self) -> float:
        return self.state.current_time

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def has_frame_task(self) -> bool:
        return self._task is not None and not self._task.done()

    def _duration(self) -> float:
        return max(0.0, self._session.scene_duration)

    def on_finished(self, listener: Callable[[float], None]) -> None:
        self._finished_listeners.append(listener)

    def play(self) -> None:
        if self.state.is_playing:
            return
        if self.state.current_time >= self._duration():
            self.state.current_time = 0.0
        self.state.is_playing = True
        self._last_frame = self._clock()
        self._start_task()

    def pause(self) -> None:
        self.state.is_playing = False
        self._cancel_task()

    def toggle(self) -> None:
        if self.state.is_playing:
            self.pause()
        else:
            self.play()

    def restart(self) -> None:
        self.pause()
        self.state.current_time = 0.0
        self.play()

    def seek(self, seconds: float) -> float:
        """Scrub to ``seconds`` (clamped); scrubbing always pauses."""
        self.pause()
        self.state.current_time = min(self._duration(), max(0.0, seconds))
        return self.state.current_time

    def clamp_to_scene(self) -> None:
        """Re-clamp after the scene got shorter."""
        duration = self._duration()
        if self.state.current_time > duration:
            self.state.current_time = duration
            if self.state.is_playing:
                self._finish(duration)

    def tick(self, now: Optional[float] = None) -> float:
        if not self.state.is_playing:
            return self.state.current_time
        now = self._clock() if now is None else now
        elapsed = max(0.0, now - (self._last_frame if self._last_frame is not None else now))
        self._last_frame = now

        duration = self._duration()
        advanced = self.state.current_time + elapsed
        if advanced >= duration:
            self.state.current_time = duration
            self._finish(duration)
        else:
            self.state.current_time = advanced
        return self.state.current_time

    def _finish(self, duration: float) -> None:
        self.state.is_playing = False
        self._cancel_task()
        logger.debug("Playback reached scene end at %.2fs", duration)
        for listener in list(self._finished_listeners):
            listener(duration)

    def scrub_css(self) -> str:
        return render_scrub_css(self._session.tracks, self.state.current_time)

    def _start_task(self) -> None:
        if self.has_frame_task:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop: the caller drives tick() itself
            return
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        while self.state.is_playing:
            await asyncio.sleep(self._frame_interval)
            self.tick()

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    def stop(self) -> None:
        """Halt playback and drop the frame task; safe to call repeatedly."""
        self.state.is_playing = False
        self._cancel_task()
