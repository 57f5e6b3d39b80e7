from motiongen.timeline.scene_duration import calculate_animation_duration, scene_duration
from motiongen.timeline.track_parser import Track
from motiongen.utils.config import settings


def test_scene_duration_is_latest_end():
    tracks = [Track(".a", "x", duration=2.0, delay=1.0), Track(".b", "y", duration=0.5, delay=5.0)]
    assert scene_duration(tracks) == 5.5


def test_empty_scene_uses_floor():
    assert scene_duration([]) == settings.default_scene_duration
    assert scene_duration([], default=3.0) == 3.0


def test_calculate_animation_duration_from_css():
    css = """
.title { animation: fadeIn 1s ease-out 0.5s forwards; }
.shape { animation: pop 800ms 3s both; }
"""
    assert calculate_animation_duration(css) == 3.8
    assert calculate_animation_duration("@keyframes x { to { opacity: 1; } }") == settings.default_scene_duration


def test_scene_ending_before_zero_uses_floor():
    tracks = [Track(".a", "x", duration=1.0, delay=-3.0)]
    assert scene_duration(tracks) == settings.default_scene_duration
    assert calculate_animation_duration(".a { animation: x 1s -3s; }") == settings.default_scene_duration
    # one positive end is enough to use the real length
    css = ".a { animation: x 1s -3s; }\n.b { animation: y 2s -1s; }"
    assert calculate_animation_duration(css) == 1.0
