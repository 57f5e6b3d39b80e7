import pytest

from motiongen.editor_session import EditorSession
from motiongen.events import ElementDragEnd, EventChannel, ScrubTo, event_from_message
from motiongen.models.code_state import INITIAL_CSS, INITIAL_HTML, CodeState


def test_new_session_starts_with_starter_scene():
    live = EditorSession("starter")
    assert live.code.html == INITIAL_HTML
    assert live.code.css == INITIAL_CSS
    assert [t.selector for t in live.tracks] == [".title", ".subtitle", ".shape-1", ".shape-2", ".shape-3"]
    assert live.scene_duration == pytest.approx(3.8)


def test_replace_code_keeps_omitted_parts_and_notifies():
    live = EditorSession("replace", code=CodeState(html="<p>hi</p>", css=".a { color: red; }"))
    seen = []
    live.on_code_change(seen.append)
    live.replace_code(css=".a { animation: x 1s; }")
    assert live.code.html == "<p>hi</p>"
    assert len(live.tracks) == 1
    live.replace_code(css=".a { animation: x 1s; }")
    assert len(seen) == 1


def test_tracks_are_recomputed_after_every_edit():
    live = EditorSession("recompute", code=CodeState(css=".a { animation: x 1s; }"))
    assert live.scene_duration == 1.0
    live.update_css(".a { animation: x 1s 4s; }")
    assert live.scene_duration == 5.0


def test_assistant_update_replays_from_start():
    live = EditorSession("assistant", code=CodeState(css=".a { animation: x 2s; }"))
    live.playback.seek(1.5)
    live.apply_assistant_update(html="<div class='b'></div>", css=".b { animation: y 4s; }")
    assert live.code.html == "<div class='b'></div>"
    assert live.playback.current_time == 0.0
    assert live.playback.is_playing
    live.close()


def test_scrub_event_seeks_and_pauses():
    live = EditorSession("scrub", code=CodeState(css=".a { animation: x 2s; }"))
    live.playback.play()
    live.dispatch(ScrubTo(time=1.2))
    assert live.playback.current_time == 1.2
    assert not live.playback.is_playing


def test_element_drag_event_pins_element():
    live = EditorSession("drag", code=CodeState(css=".logo {\n  transform: translate(-50%, -50%);\n}\n"))
    live.dispatch(ElementDragEnd(selector=".logo", x_percent=25, y_percent=75.5))
    css = live.code.css
    assert "position: absolute;" in css
    assert "left: 25.00%;" in css
    assert "top: 75.50%;" in css
    assert "transform: none;" in css


def test_closed_session_ignores_events():
    live = EditorSession("closed", code=CodeState(css=".a { animation: x 2s; }"))
    live.close()
    live.dispatch(ScrubTo(time=1.0))
    assert live.playback.current_time == 0.0
    assert live.closed


def test_event_from_message():
    assert event_from_message({"type": "SCRUB_TO", "time": "1.5"}) == ScrubTo(1.5)
    drag = event_from_message({"type": "ELEMENT_DRAG_END", "selector": ".a", "x": 10, "y": 20})
    assert drag == ElementDragEnd(".a", 10.0, 20.0)
    with pytest.raises(ValueError):
        event_from_message({"type": "RESIZE"})
    with pytest.raises(ValueError):
        event_from_message({"type": "SCRUB_TO"})
    with pytest.raises(ValueError):
        event_from_message({"type": "ELEMENT_DRAG_END", "selector": ".a"})


def test_event_channel_subscribe_and_unsubscribe():
    channel = EventChannel()
    received = []
    unsubscribe = channel.subscribe(ScrubTo, received.append)
    assert channel.publish(ScrubTo(1.0)) == 1
    assert channel.publish(ElementDragEnd(".a", 0, 0)) == 0
    unsubscribe()
    assert channel.publish(ScrubTo(2.0)) == 0
    assert received == [ScrubTo(1.0)]
