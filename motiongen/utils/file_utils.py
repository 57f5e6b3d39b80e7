"""File utilities."""
from __future__ import annotations

from pathlib import Path


def ensure_dir(path: str) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


# Scene sources are text.
BINARY_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".webm",
    ".mp4",
    ".mov",
    ".zip",
    ".gz",
    ".pdf",
}


def _looks_binary(path: Path) -> bool:
    """Heuristic check whether a file is binary by extension and by inspecting bytes."""
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return True
    try:
        with open(path, "rb") as fh:
            chunk = fh.read(512)
    except OSError:
        return True
    return b"\x00" in chunk


def read_text_file(path: str) -> str:
    """Read an HTML/CSS source as UTF-8, dropping undecodable bytes.

    Raises FileNotFoundError for a missing path and ValueError for binary files.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    if _looks_binary(p):
        raise ValueError(f"Binary file: {p.name}")
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return p.read_text(encoding="utf-8", errors="ignore")


def write_bytes_file(directory: str, filename: str, data: bytes) -> Path:
    """Write ``data`` under ``directory`` (created on demand) and return the path."""
    target = ensure_dir(directory) / filename
    target.write_bytes(data)
    return target
