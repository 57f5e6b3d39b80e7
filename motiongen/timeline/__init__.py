"""Timeline Module.

This module turns scene CSS into an editable animation timeline.

Components:
- css_blocks: Splits CSS into top-level rule blocks and declarations
- track_parser: Extracts per-selector animation tracks
- scene_duration: Derives the total scene length from tracks
- css_mutator: Rewrites single declarations back into the CSS text
- timeline_model: Pixel geometry and drag gestures
- playback: Frame-driven playhead and scrub overrides
"""

from motiongen.timeline.css_blocks import (
    CssBlock,
    Declaration,
    extract_blocks,
    find_declaration,
    iter_declarations,
    split_selector_list,
)

from motiongen.timeline.track_parser import (
    DEFAULT_TRACK_NAME,
    Track,
    parse_animation_shorthand,
    parse_time,
    parse_tracks,
)

from motiongen.timeline.scene_duration import (
    calculate_animation_duration,
    scene_duration,
)

from motiongen.timeline.css_mutator import (
    apply_element_position,
    set_properties,
    set_property,
    update_animation_timing,
)

from motiongen.timeline.timeline_model import (
    DragGesture,
    GestureInProgressError,
    NoActiveGestureError,
    TimelineViewModel,
    TrackGeometry,
)

from motiongen.timeline.playback import (
    PlaybackDriver,
    PlaybackState,
    render_scrub_css,
    scrub_delays,
)

__all__ = [
    # Blocks
    "CssBlock",
    "Declaration",
    "extract_blocks",
    "find_declaration",
    "iter_declarations",
    "split_selector_list",
    # Tracks
    "DEFAULT_TRACK_NAME",
    "Track",
    "parse_animation_shorthand",
    "parse_time",
    "parse_tracks",
    # Duration
    "calculate_animation_duration",
    "scene_duration",
    # Mutation
    "apply_element_position",
    "set_properties",
    "set_property",
    "update_animation_timing",
    # View-model
    "DragGesture",
    "GestureInProgressError",
    "NoActiveGestureError",
    "TimelineViewModel",
    "TrackGeometry",
    # Playback
    "PlaybackDriver",
    "PlaybackState",
    "render_scrub_css",
    "scrub_delays",
]
