"""Split CSS source into top-level rule blocks and declarations.

Malformed input produces fewer blocks, never an exception.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

_COMMENT_RE = re.compile(r"/\*.*?(?:\*/|\Z)", re.DOTALL)


@dataclass(frozen=True)
class CssBlock:
    """A top-level ``selector { body }`` rule.

    ``body`` has comments removed; ``body_start``/``body_end`` delimit the raw
    text between the braces in the source string.
    """

    selector: str
    body: str
    start_index: int
    body_start: int
    body_end: int


@dataclass(frozen=True)
class Declaration:
    """One ``name: value`` pair inside a rule body.

    Offsets are relative to the scanned body text and cover the value with
    surrounding whitespace excluded.
    """

    name: str
    value: str
    value_start: int
    value_end: int


def strip_comments(text: str) -> str:
    return _COMMENT_RE.sub("", text or "")


def _skip_comment(css: str, i: int) -> int:
    """Return the index just past the comment opening at ``i``."""
    close = css.find("*/", i + 2)
    return len(css) if close == -1 else close + 2


def _skip_string(css: str, i: int) -> int:
    """Return the index just past the quoted string opening at ``i``."""
    quote = css[i]
    j = i + 1
    while j < len(css):
        ch = css[j]
        if ch == "\\":
            j += 2
            continue
        if ch == quote:
            return j + 1
        if ch == "\n":
            return j
        j += 1
    return len(css)


def extract_blocks(css: str) -> List[CssBlock]:
    """Return top-level rule blocks in source order.

    ``@media``/``@keyframes`` bodies are returned whole as a single block; their
    nested rules are never split out. A block whose braces never close is
    dropped.
    """
    if not css:
        return []

    blocks: List[CssBlock] = []
    depth = 0
    selector_chars: List[str] = []
    body_chars: List[str] = []
    selector_start = -1
    pending_selector = ""
    pending_start = 0
    body_start = 0
    i = 0
    n = len(css)

    while i < n:
        ch = css[i]

        if ch == "/" and css.startswith("*", i + 1):
            i = _skip_comment(css, i)
            continue

        if ch in "\"'":
            end = _skip_string(css, i)
            if depth == 0:
                if selector_start < 0:
                    selector_start = i
                selector_chars.append(css[i:end])
            else:
                body_chars.append(css[i:end])
            i = end
            continue

        if ch == "{":
            if depth == 0:
                pending_selector = "".join(selector_chars).strip()
                pending_start = selector_start if selector_start >= 0 else i
                body_start = i + 1
                selector_chars = []
                body_chars = []
            else:
                body_chars.append(ch)
            depth += 1
        elif ch == "}":
            if depth == 0:
                # stray closer: drop whatever selector text preceded it
                selector_chars = []
                selector_start = -1
            else:
                depth -= 1
                if depth == 0:
                    blocks.append(
                        CssBlock(
                            selector=pending_selector,
                            body="".join(body_chars),
                            start_index=pending_start,
                            body_start=body_start,
                            body_end=i,
                        )
                    )
                    body_chars = []
                    selector_start = -1
                else:
                    body_chars.append(ch)
        elif ch == ";" and depth == 0:
            # block-less statement such as @import or @charset
            selector_chars = []
            selector_start = -1
        elif depth == 0:
            if selector_start < 0 and not ch.isspace():
                selector_start = i
            selector_chars.append(ch)
        else:
            body_chars.append(ch)
        i += 1

    return blocks


def split_selector_list(selector: str) -> List[str]:
    """Split ``.a, .b`` into ``[".a", ".b"]`` leaving ``:is(.a, .b)`` intact."""
    return [part for part in split_top_level(selector, ",") if part]


def split_top_level(text: str, separator: Optional[str] = None) -> List[str]:
    """Split on ``separator`` (or runs of whitespace when None) outside (), [] and quotes.

    Parts are stripped; empty parts are kept only for explicit separators.
    """
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    quote: Optional[str] = None

    def flush() -> None:
        parts.append("".join(current).strip())
        current.clear()

    for ch in text or "":
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        elif depth == 0:
            if separator is None and ch.isspace():
                if current:
                    flush()
                continue
            if separator is not None and ch == separator:
                flush()
                continue
        current.append(ch)

    if current or separator is not None:
        flush()
    if separator is None:
        return [part for part in parts if part]
    return parts


def _find_colon(body: str, start: int, end: int) -> int:
    i = start
    depth = 0
    while i < end:
        ch = body[i]
        if ch == "/" and body.startswith("*", i + 1):
            i = _skip_comment(body, i)
            continue
        if ch in "\"'":
            i = _skip_string(body, i)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == ":" and depth == 0:
            return i
        i += 1
    return -1


def _make_declaration(body: str, start: int, end: int) -> Optional[Declaration]:
    end = min(end, len(body))
    colon = _find_colon(body, start, end)
    if colon < 0:
        return None
    name = strip_comments(body[start:colon]).strip().lower()
    if not name or any(ch.isspace() for ch in name):
        return None
    value_start = colon + 1
    while value_start < end and body[value_start].isspace():
        value_start += 1
    value_end = end
    while value_end > value_start and body[value_end - 1].isspace():
        value_end -= 1
    value = strip_comments(body[value_start:value_end]).strip()
    return Declaration(name=name, value=value, value_start=value_start, value_end=value_end)


def iter_declarations(body: str) -> List[Declaration]:
    """Scan a rule body into declarations.

    A declaration ends at ``;`` or at the end of the body. Nested blocks (CSS
    nesting) are skipped, so their inner declarations are not reported.
    """
    declarations: List[Declaration] = []
    if not body:
        return declarations

    n = len(body)
    segment_start = 0
    paren = 0
    i = 0
    while i < n:
        ch = body[i]
        if ch == "/" and body.startswith("*", i + 1):
            i = _skip_comment(body, i)
            continue
        if ch in "\"'":
            i = _skip_string(body, i)
            continue
        if ch == "(":
            paren += 1
        elif ch == ")":
            paren = max(0, paren - 1)
        elif ch == ";" and paren == 0:
            decl = _make_declaration(body, segment_start, i)
            if decl:
                declarations.append(decl)
            segment_start = i + 1
        elif ch == "{" and paren == 0:
            depth = 1
            i += 1
            while i < n and depth:
                if body[i] == "{":
                    depth += 1
                elif body[i] == "}":
                    depth -= 1
                i += 1
            segment_start = i
            continue
        i += 1

    decl = _make_declaration(body, segment_start, n)
    if decl:
        declarations.append(decl)
    return declarations


def find_declaration(body: str, prop: str) -> Optional[Declaration]:
    """Return the last declaration of ``prop`` (case-insensitive), the one that applies."""
    wanted = prop.strip().lower()
    found = None
    for decl in iter_declarations(body):
        if decl.name == wanted:
            found = decl
    return found
