"""Rewrite single declarations inside CSS text without touching unrelated rules."""
from __future__ import annotations

import logging
import re
from typing import Mapping

from motiongen.timeline.css_blocks import extract_blocks, find_declaration, strip_comments

logger = logging.getLogger(__name__)

_IMPORTANT_RE = re.compile(r"!\s*important\s*$", re.IGNORECASE)
DEFAULT_INDENT = "  "


def format_seconds(value: float) -> str:
    return f"{value:.2f}s"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def _detect_indent(body: str) -> str:
    for line in body.splitlines()[1:]:
        stripped = line.lstrip()
        if stripped and not stripped.startswith("}"):
            return line[: len(line) - len(stripped)]
    return DEFAULT_INDENT


def _replace_value(body: str, start: int, end: int, value: str) -> str:
    old = strip_comments(body[start:end]).strip()
    if _IMPORTANT_RE.search(old) and not _IMPORTANT_RE.search(value):
        value = f"{value} !important"
    return body[:start] + value + body[end:]


def _append_declaration(body: str, prop: str, value: str) -> str:
    content_end = len(body.rstrip())
    head, tail = body[:content_end], body[content_end:]
    declaration = f"{prop}: {value};"

    if not head.strip():
        return f"\n{DEFAULT_INDENT}{declaration}\n"

    meaningful = strip_comments(head).strip()
    separator = "" if not meaningful or meaningful.endswith((";", "}")) else ";"
    if "\n" in body:
        return f"{head}{separator}\n{_detect_indent(body)}{declaration}{tail}"
    return f"{head}{separator} {declaration}{tail or ' '}"


def _set_in_body(body: str, prop: str, value: str) -> str:
    existing = find_declaration(body, prop)
    if existing:
        return _replace_value(body, existing.value_start, existing.value_end, value)
    return _append_declaration(body, prop, value)


def set_property(css: str, selector: str, prop: str, value: str) -> str:
    """Return ``css`` with ``prop: value`` set on the rule for ``selector``.

    The selector is matched literally against top-level rule selectors; when
    several rules match, the last one is edited. A missing rule is appended.
    """
    css = css or ""
    target = (selector or "").strip()
    prop = (prop or "").strip()
    if not target or not prop:
        logger.warning("Ignoring property update with empty selector or property: %r %r", selector, prop)
        return css

    block = None
    for candidate in extract_blocks(css):
        if candidate.selector == target:
            block = candidate

    if block is None:
        rule = f"{target} {{\n{DEFAULT_INDENT}{prop}: {value};\n}}"
        base = css.rstrip()
        return f"{base}\n\n{rule}" if base else rule

    body = css[block.body_start:block.body_end]
    new_body = _set_in_body(body, prop, value)
    return css[: block.body_start] + new_body + css[block.body_end:]


def set_properties(css: str, selector: str, properties: Mapping[str, str]) -> str:
    """Apply several ``set_property`` calls in order, each on the latest text."""
    for prop, value in properties.items():
        css = set_property(css, selector, prop, value)
    return css


def update_animation_timing(css: str, selector: str, duration: float, delay: float) -> str:
    return set_properties(
        css,
        selector,
        {
            "animation-duration": format_seconds(duration),
            "animation-delay": format_seconds(delay),
        },
    )


def apply_element_position(css: str, selector: str, x_percent: float, y_percent: float) -> str:
    """Pin an element at a percentage offset inside its offset parent.

    Existing transforms and margins are cleared because they would shift the
    element away from the dropped position.
    """
    return set_properties(
        css,
        selector,
        {
            "position": "absolute",
            "left": format_percent(x_percent),
            "top": format_percent(y_percent),
            "margin": "0",
            "transform": "none",
        },
    )
