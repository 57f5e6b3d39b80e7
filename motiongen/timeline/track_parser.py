"""Parse CSS text into timeline tracks (selector, name, duration, delay)."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from motiongen.timeline.css_blocks import (
    extract_blocks,
    find_declaration,
    split_selector_list,
    split_top_level,
)

logger = logging.getLogger(__name__)

DEFAULT_TRACK_NAME = "anim"

TIME_TOKEN_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:ms|s)$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?", re.IGNORECASE)
_BARE_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)$")
_IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)

ANIMATION_KEYWORDS = frozenset(
    {
        "linear",
        "ease",
        "ease-in",
        "ease-out",
        "ease-in-out",
        "step-start",
        "step-end",
        "infinite",
        "normal",
        "reverse",
        "alternate",
        "alternate-reverse",
        "forwards",
        "backwards",
        "both",
        "running",
        "paused",
        "none",
        "initial",
        "inherit",
        "unset",
    }
)


@dataclass(frozen=True)
class Track:
    selector: str
    name: str
    duration: float
    delay: float = 0.0

    @property
    def end(self) -> float:
        return self.delay + self.duration


def parse_time(value: Optional[str]) -> float:
    """Convert ``"400ms"``/``"1.5s"`` to seconds; anything unparsable is 0."""
    if not value:
        return 0.0
    cleaned = _IMPORTANT_RE.sub("", value).strip().lower()
    match = _NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    unit = cleaned[match.end():].split(",", 1)[0].strip()
    if unit.startswith("ms"):
        return number / 1000.0
    return number


def _clean_value(value: str) -> str:
    return _IMPORTANT_RE.sub("", value).strip()


def _is_name_candidate(token: str) -> bool:
    lowered = token.lower()
    if TIME_TOKEN_RE.match(token) or _BARE_NUMBER_RE.match(token):
        return False
    if "(" in token:
        # cubic-bezier(), steps(), linear(), var()
        return False
    if lowered in ANIMATION_KEYWORDS:
        return False
    return not _NUMBER_RE.match(token)


def parse_animation_shorthand(value: str) -> Tuple[str, float, float]:
    """Return ``(name, duration, delay)`` from an ``animation`` shorthand value.

    The first two time tokens are duration then delay. Only the first layer of a
    comma-separated list is read.
    """
    layers = split_top_level(_clean_value(value), ",")
    first_layer = layers[0] if layers else ""
    tokens = split_top_level(first_layer)

    times = [parse_time(tok) for tok in tokens if TIME_TOKEN_RE.match(tok)]
    duration = times[0] if times else 0.0
    delay = times[1] if len(times) > 1 else 0.0
    name = next((tok for tok in tokens if _is_name_candidate(tok)), "")
    return name, duration, delay


def _resolve_timing(body: str) -> Optional[Tuple[str, float, float]]:
    shorthand = find_declaration(body, "animation")
    name_decl = find_declaration(body, "animation-name")
    duration_decl = find_declaration(body, "animation-duration")
    delay_decl = find_declaration(body, "animation-delay")

    if not any((shorthand, name_decl, duration_decl, delay_decl)):
        return None

    name, duration, delay = "", 0.0, 0.0
    if shorthand:
        name, duration, delay = parse_animation_shorthand(shorthand.value)
    if name_decl:
        name = split_top_level(_clean_value(name_decl.value), ",")[0]
    if duration_decl:
        duration = parse_time(duration_decl.value)
    if delay_decl:
        delay = parse_time(delay_decl.value)

    if name.lower() == "none":
        return None
    return name, duration, delay


def parse_tracks(css: str) -> List[Track]:
    """Return one Track per animated selector, in source order.

    At-rules are skipped and rules that resolve to a zero duration produce no
    track. Never raises for string input.
    """
    tracks: List[Track] = []
    for block in extract_blocks(css):
        if not block.selector or block.selector.startswith("@"):
            continue
        timing = _resolve_timing(block.body)
        if timing is None:
            continue
        name, duration, delay = timing
        if duration <= 0:
            logger.debug("Skipping zero-duration animation on %s", block.selector)
            continue
        for selector in split_selector_list(block.selector):
            tracks.append(
                Track(
                    selector=selector,
                    name=name or DEFAULT_TRACK_NAME,
                    duration=duration,
                    delay=delay,
                )
            )
    return tracks
