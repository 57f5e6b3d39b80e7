"""Reduce timeline tracks to the total playable scene length."""
from __future__ import annotations

from typing import Iterable, Optional

from motiongen.timeline.track_parser import Track, parse_tracks
from motiongen.utils.config import settings


def scene_duration(tracks: Iterable[Track], default: Optional[float] = None) -> float:
    """Latest ``delay + duration`` across tracks.

    Falls back to the configured floor when there are no tracks or when every
    track ends at or before zero (negative delays).
    """
    floor = settings.default_scene_duration if default is None else default
    ends = [track.delay + track.duration for track in tracks]
    if not ends:
        return floor
    end = max(ends)
    return end if end > 0 else floor


def calculate_animation_duration(css: str, default: Optional[float] = None) -> float:
    return scene_duration(parse_tracks(css), default=default)
