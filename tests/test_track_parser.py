import pytest

from motiongen.timeline.track_parser import (
    DEFAULT_TRACK_NAME,
    Track,
    parse_animation_shorthand,
    parse_time,
    parse_tracks,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("1.5s", 1.5),
        ("400ms", 0.4),
        ("2", 2.0),
        (".5s", 0.5),
        ("3s !important", 3.0),
        ("-1s", -1.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_parse_time(value, expected):
    assert parse_time(value) == pytest.approx(expected)


def test_shorthand_first_time_is_duration_second_is_delay():
    assert parse_animation_shorthand("slide 2s ease-in-out 1s forwards") == ("slide", 2.0, 1.0)
    assert parse_animation_shorthand("1s 500ms fade") == ("fade", 1.0, 0.5)


def test_shorthand_ignores_timing_functions_and_keywords():
    name, duration, delay = parse_animation_shorthand("cubic-bezier(0.2, 0, 0, 1) 800ms infinite alternate pulse")
    assert (name, duration, delay) == ("pulse", 0.8, 0.0)


def test_shorthand_reads_first_layer_only():
    assert parse_animation_shorthand("a 1s 2s, b 5s 5s") == ("a", 1.0, 2.0)


def test_single_shorthand_rule():
    tracks = parse_tracks("selector { animation: slide 2s 1s forwards; }")
    assert tracks == [Track(selector="selector", name="slide", duration=2.0, delay=1.0)]


def test_selector_list_expands_to_one_track_each():
    tracks = parse_tracks(".a, .b { animation-duration: 0.5s; animation-delay: 3s; }")
    assert [(t.selector, t.duration, t.delay) for t in tracks] == [(".a", 0.5, 3.0), (".b", 0.5, 3.0)]
    assert all(t.name == DEFAULT_TRACK_NAME for t in tracks)


def test_at_rules_only_yield_no_tracks():
    css = """
@keyframes fade { from { opacity: 0; } to { opacity: 1; } }
@media screen { .a { animation: fade 1s; } }
"""
    assert parse_tracks(css) == []


def test_longhands_override_shorthand():
    css = ".a { animation: slide 2s 1s; animation-delay: 250ms; animation-name: pop; }"
    assert parse_tracks(css) == [Track(".a", "pop", 2.0, 0.25)]


def test_last_duplicate_declaration_wins():
    css = ".a { animation-duration: 1s; animation-duration: 3s; }"
    assert parse_tracks(css)[0].duration == 3.0


def test_zero_duration_and_none_produce_no_track():
    assert parse_tracks(".a { animation-delay: 2s; }") == []
    assert parse_tracks(".a { animation: none; }") == []
    assert parse_tracks(".a { animation: slide 1s; animation-name: none; }") == []


def test_declarations_in_comments_are_ignored():
    css = ".a { /* animation: slide 9s; */ animation: fade 1s; }"
    assert parse_tracks(css) == [Track(".a", "fade", 1.0, 0.0)]


def test_tracks_follow_source_order():
    css = ".b { animation: x 1s; } .a { color: red; } .c { animation: y 2s 1s; }"
    assert [t.selector for t in parse_tracks(css)] == [".b", ".c"]


def test_track_end():
    assert Track(".a", "x", 1.5, 2.0).end == 3.5


@pytest.mark.parametrize("css", ["", "}}}", "{", ".a {", "@@@ ;;; {{ }", "\x00\x01"])
def test_never_raises_on_malformed_css(css):
    assert isinstance(parse_tracks(css), list)
