import pytest

from motiongen.editor_session import EditorSession
from motiongen.models.code_state import CodeState
from motiongen.timeline.timeline_model import (
    MIN_BAR_WIDTH_PX,
    MIN_WRITTEN_DURATION,
    GestureInProgressError,
    NoActiveGestureError,
    TimelineViewModel,
)
from motiongen.timeline.track_parser import parse_tracks


@pytest.fixture
def session():
    css = ".a { animation: slide 2s 1s forwards; }\n.b { animation: fade 50ms; }\n"
    live = EditorSession("timeline-test", code=CodeState(html="<div class='a'></div>", css=css))
    yield live
    live.close()


def test_track_geometry_uses_pixels_per_second(session):
    first, second = session.timeline.track_geometry()
    assert (first.selector, first.left_px, first.width_px) == (".a", 100.0, 200.0)
    assert (first.start, first.end) == (1.0, 3.0)
    assert second.width_px == MIN_BAR_WIDTH_PX


def test_time_markers_cover_scene(session):
    assert session.timeline.time_markers() == [0, 1, 2, 3]
    session.update_css(".a { animation: x 2.2s; }")
    assert session.timeline.time_markers() == [0, 1, 2, 3]


def test_move_drag_updates_delay(session):
    session.timeline.begin_drag(".a", "move", pointer_x=100)
    assert session.timeline.drag_to(150) == (2.0, 1.5)
    assert "animation-delay: 1.50s;" in session.code.css
    # deltas are measured from the gesture start, not the previous move
    assert session.timeline.drag_to(120) == (2.0, 1.2)
    track = parse_tracks(session.code.css)[0]
    assert (track.duration, track.delay) == (2.0, 1.2)


def test_move_drag_never_goes_negative(session):
    session.timeline.begin_drag(0, "move", pointer_x=500)
    duration, delay = session.timeline.drag_to(-10_000)
    assert delay == 0.0
    assert session.tracks[0].delay == 0.0


def test_resize_drag_clamps_to_minimum(session):
    session.timeline.begin_drag(".a", "resize", pointer_x=300)
    duration, delay = session.timeline.drag_to(-10_000)
    assert duration == 0.1
    assert delay == 1.0
    assert session.tracks[0].duration > 0


def test_resize_drag_grows_scene(session):
    session.timeline.begin_drag(".a", "resize", pointer_x=300)
    session.timeline.drag_to(450)
    assert session.scene_duration == pytest.approx(4.5)


def test_move_drag_leaves_short_duration_untouched():
    live = EditorSession("short-track", code=CodeState(html="", css=".a { animation: blink 4ms 1s; }"))
    try:
        live.timeline.begin_drag(".a", "move", pointer_x=0)
        assert live.timeline.drag_to(10) == (0.004, 1.1)
        assert "animation-duration" not in live.code.css
        track = parse_tracks(live.code.css)[0]
        assert (track.duration, track.delay) == (0.004, 1.1)
    finally:
        live.close()


def test_resize_drag_never_writes_zero_duration():
    live = EditorSession("tiny-floor", code=CodeState(html="", css=".a { animation: blink 1s; }"))
    try:
        live.timeline = TimelineViewModel(live, min_duration=0.001)
        live.timeline.begin_drag(".a", "resize", pointer_x=100)
        duration, delay = live.timeline.drag_to(-10_000)
        assert duration == MIN_WRITTEN_DURATION
        assert "animation-duration: 0.01s;" in live.code.css
        assert parse_tracks(live.code.css)[0].duration == MIN_WRITTEN_DURATION
    finally:
        live.close()


def test_time_markers_for_scene_ending_before_zero():
    live = EditorSession("negative", code=CodeState(html="", css=".a { animation: x 1s -3s; }"))
    try:
        assert live.timeline.time_markers() == [0, 1, 2, 3, 4, 5]
    finally:
        live.close()


def test_one_gesture_at_a_time(session):
    session.timeline.begin_drag(".a", "move", pointer_x=0)
    with pytest.raises(GestureInProgressError):
        session.timeline.begin_drag(".b", "move", pointer_x=0)
    gesture = session.timeline.end_drag()
    assert gesture.selector == ".a"
    assert session.timeline.end_drag() is None
    session.timeline.begin_drag(".b", "move", pointer_x=0)


def test_drag_without_gesture_raises(session):
    with pytest.raises(NoActiveGestureError):
        session.timeline.drag_to(10)


def test_begin_drag_rejects_unknown_targets(session):
    with pytest.raises(LookupError):
        session.timeline.begin_drag(".missing", "move", pointer_x=0)
    with pytest.raises(LookupError):
        session.timeline.begin_drag(7, "move", pointer_x=0)
    with pytest.raises(ValueError):
        session.timeline.begin_drag(".a", "spin", pointer_x=0)


def test_seek_to_pixel_clamps_and_pauses(session):
    session.playback.play()
    assert session.timeline.seek_to_pixel(150) == 1.5
    assert not session.playback.is_playing
    assert session.timeline.playhead_px() == 150.0
    assert session.timeline.seek_to_pixel(10_000) == 3.0
    assert session.timeline.seek_to_pixel(-5) == 0.0


def test_auto_scroll_target(session):
    timeline = session.timeline
    assert timeline.auto_scroll_target(2.0, scroll_left=0, container_width=500) is None
    assert timeline.auto_scroll_target(10.0, scroll_left=0, container_width=500) == 750.0
    assert timeline.auto_scroll_target(1.0, scroll_left=400, container_width=500) == 0.0
