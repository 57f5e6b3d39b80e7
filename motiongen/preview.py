"""Build full HTML documents around scene code for preview and export."""
from __future__ import annotations

from typing import Iterable, Optional

from motiongen.models.code_state import CodeState
from motiongen.timeline.playback import render_scrub_css
from motiongen.timeline.track_parser import Track

PAUSE_STYLE_ID = "motiongen-pause"
PAUSE_ALL_CSS = "*, *::before, *::after { animation-play-state: paused !important; }"

PREVIEW_BASE_CSS = """
* { box-sizing: border-box; }
body {
  margin: 0;
  overflow: hidden;
  width: 100vw;
  height: 100vh;
  touch-action: none;
  user-select: none;
  -webkit-user-select: none;
}
.interactive-hover {
  outline: 2px dashed #3b82f6;
  cursor: grab !important;
  z-index: 10000;
  position: relative;
}
.interactive-active {
  outline: 2px solid #3b82f6;
  cursor: grabbing !important;
  z-index: 10000;
}
"""

# Shared by the preview's SCRUB_TO handler and the frame-accurate exporter.
# Every element with a live animation is pushed to ``time`` by a negative delay
# relative to the delay it was authored with.
SCRUB_FUNCTION_JS = """
function motiongenScrubTo(time) {
  document.querySelectorAll('*').forEach(function (el) {
    var style = window.getComputedStyle(el);
    if (!style.animationName || style.animationName === 'none') return;
    if (el.dataset.motiongenDelay === undefined) {
      var raw = (style.animationDelay || '0s').split(',')[0].trim();
      var base = raw.endsWith('ms') ? parseFloat(raw) / 1000 : parseFloat(raw);
      el.dataset.motiongenDelay = isNaN(base) ? '0' : String(base);
    }
    var original = parseFloat(el.dataset.motiongenDelay);
    el.style.animationDelay = (original - time) + 's';
    el.style.animationPlayState = 'paused';
  });
}
"""

# Drop positions are percentages of the element's offset parent.
PREVIEW_SCRIPT_JS = """
var dragData = { el: null, selector: null, shiftX: 0, shiftY: 0 };

function uniqueSelector(el) {
  if (!el) return null;
  if (el.id) return '#' + el.id;
  var selector = '';
  if (el.className && typeof el.className === 'string') {
    var classes = el.className.split(/\\s+/).filter(function (c) {
      return c && c !== 'interactive-hover' && c !== 'interactive-active';
    });
    if (classes.length > 0) selector = '.' + classes.join('.');
  }
  if (!selector) selector = el.tagName.toLowerCase();
  var parent = el.parentElement;
  if (parent) {
    var siblings = Array.prototype.slice.call(parent.children);
    var matches = siblings.filter(function (sib) {
      if (sib === el) return true;
      if (sib.tagName !== el.tagName) return false;
      if (selector.charAt(0) === '.') {
        return selector.substring(1).split('.').every(function (cls) { return sib.classList.contains(cls); });
      }
      return true;
    });
    if (matches.length > 1) selector += ':nth-child(' + (siblings.indexOf(el) + 1) + ')';
  }
  return selector;
}

function containerRect(el) {
  var parent = el.offsetParent || document.body;
  return parent.getBoundingClientRect();
}

document.body.addEventListener('mouseover', function (e) {
  if (dragData.el) return;
  var target = e.target;
  if (target === document.body || target === document.documentElement) return;
  target.classList.add('interactive-hover');
});

document.body.addEventListener('mouseout', function (e) {
  if (dragData.el) return;
  if (e.target) e.target.classList.remove('interactive-hover');
});

document.body.addEventListener('mousedown', function (e) {
  var target = e.target;
  e.preventDefault();
  if (target === document.body || target === document.documentElement) return;
  var rect = target.getBoundingClientRect();
  var parentRect = containerRect(target);
  dragData = {
    el: target,
    selector: uniqueSelector(target),
    shiftX: e.clientX - rect.left,
    shiftY: e.clientY - rect.top
  };
  target.classList.remove('interactive-hover');
  target.classList.add('interactive-active');
  target.style.width = rect.width + 'px';
  target.style.height = rect.height + 'px';
  target.style.position = 'absolute';
  target.style.left = (rect.left - parentRect.left) + 'px';
  target.style.top = (rect.top - parentRect.top) + 'px';
  target.style.margin = '0';
  target.style.transform = 'none';
});

window.addEventListener('mousemove', function (e) {
  if (!dragData.el) return;
  e.preventDefault();
  var parentRect = containerRect(dragData.el);
  dragData.el.style.left = (e.clientX - dragData.shiftX - parentRect.left) + 'px';
  dragData.el.style.top = (e.clientY - dragData.shiftY - parentRect.top) + 'px';
});

window.addEventListener('mouseup', function () {
  if (!dragData.el) return;
  var el = dragData.el;
  el.classList.remove('interactive-active');
  el.classList.add('interactive-hover');
  var rect = el.getBoundingClientRect();
  var parentRect = containerRect(el);
  var width = parentRect.width || window.innerWidth;
  var height = parentRect.height || window.innerHeight;
  window.parent.postMessage({
    type: 'ELEMENT_DRAG_END',
    selector: dragData.selector,
    x: ((rect.left - parentRect.left) / width) * 100,
    y: ((rect.top - parentRect.top) / height) * 100
  }, '*');
  dragData = { el: null, selector: null, shiftX: 0, shiftY: 0 };
});

window.addEventListener('message', function (e) {
  if (e.data && e.data.type === 'SCRUB_TO') motiongenScrubTo(Number(e.data.time) || 0);
});

document.addEventListener('dragstart', function (e) { e.preventDefault(); });
"""


def _document(head_css: str, html: str, script: str = "", pause_css: str = "") -> str:
    script_tag = f"<script>\n{script}\n</script>" if script else ""
    pause_tag = f"<style id=\"{PAUSE_STYLE_ID}\">\n{pause_css}\n</style>\n" if pause_css else ""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<style>\n{head_css}\n</style>\n"
        f"{pause_tag}"
        "</head>\n"
        "<body>\n"
        f"{html}\n"
        f"{script_tag}\n"
        "</body>\n"
        "</html>\n"
    )


def build_preview_document(
    code: CodeState,
    is_playing: bool = True,
    current_time: Optional[float] = None,
    tracks: Optional[Iterable[Track]] = None,
    interactive: bool = True,
) -> str:
    """Preview page for the editor iframe.

    When paused, every animation is frozen; if ``current_time`` and ``tracks``
    are given the frozen frame is the one at ``current_time``.
    """
    head_css = "\n".join([PREVIEW_BASE_CSS, "/* Scene */", code.css])
    pause_css = ""
    if not is_playing:
        pause_css = PAUSE_ALL_CSS
        if current_time is not None and tracks is not None:
            pause_css = f"{pause_css}\n{render_scrub_css(tracks, current_time)}"
    script = SCRUB_FUNCTION_JS + PREVIEW_SCRIPT_JS if interactive else SCRUB_FUNCTION_JS
    return _document(head_css, code.html, script, pause_css=pause_css)


def build_export_document(code: CodeState, width: int, height: int, paused: bool = False) -> str:
    """Fixed-size page rendered by the video exporter."""
    frame_css = (
        "body {\n"
        "  margin: 0;\n"
        "  padding: 0;\n"
        f"  width: {width}px;\n"
        f"  height: {height}px;\n"
        "  overflow: hidden;\n"
        "}"
    )
    return _document(f"{frame_css}\n{code.css}", code.html, pause_css=PAUSE_ALL_CSS if paused else "")
