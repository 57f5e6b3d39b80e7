"""Export a scene to video.

Two local strategies run headless Chromium through Playwright:

- ``frames``: animations are paused, every frame is scrubbed into place with
  negative delays and screenshotted, then ffmpeg encodes the frames. Slow but
  frame-accurate.
- ``record``: Playwright records the page in real time while the scene plays.

When ``render_server_url`` is configured the request is forwarded to a remote
render server instead.
"""
from __future__ import annotations

import asyncio
import logging
import math
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Literal, Optional, Protocol, Tuple

import requests
from pydantic import BaseModel, Field

from motiongen.models.code_state import CodeState, Orientation
from motiongen.preview import PAUSE_STYLE_ID, SCRUB_FUNCTION_JS, build_export_document
from motiongen.timeline.scene_duration import calculate_animation_duration
from motiongen.utils.config import settings

logger = logging.getLogger(__name__)

RenderMode = Literal["frames", "record"]

RESOLUTION_PRESETS: Dict[str, Tuple[int, int]] = {
    "landscape": (1920, 1080),
    "portrait": (1080, 1920),
}

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]


class ExportError(RuntimeError):
    """Rendering failed; the scene code is untouched."""


class RenderRequest(BaseModel):
    html: str
    css: str
    duration_seconds: float = Field(gt=0)
    fps: int = Field(default=30, ge=1, le=120)
    width: int = Field(default=1920, ge=16, le=7680)
    height: int = Field(default=1080, ge=16, le=7680)
    mode: RenderMode = "frames"

    @property
    def total_frames(self) -> int:
        return max(1, math.ceil(self.duration_seconds * self.fps))

    @classmethod
    def for_scene(
        cls,
        code: CodeState,
        orientation: Orientation = "landscape",
        duration_seconds: Optional[float] = None,
        fps: Optional[int] = None,
        mode: RenderMode = "frames",
    ) -> "RenderRequest":
        """Request covering the whole scene; the duration defaults to the timeline's."""
        width, height = RESOLUTION_PRESETS.get(orientation, (settings.export_width, settings.export_height))
        return cls(
            html=code.html,
            css=code.css,
            duration_seconds=duration_seconds or calculate_animation_duration(code.css),
            fps=fps or settings.export_fps,
            width=width,
            height=height,
            mode=mode,
        )


class Renderer(Protocol):
    async def render(self, request: RenderRequest) -> bytes:
        ...


def _ffmpeg_binary() -> str:
    if settings.ffmpeg_binary:
        return settings.ffmpeg_binary
    import imageio_ffmpeg

    return imageio_ffmpeg.get_ffmpeg_exe()


def encode_frames_command(frames_dir: Path, fps: int, output: Path) -> List[str]:
    return [
        _ffmpeg_binary(),
        "-framerate",
        str(fps),
        "-i",
        str(frames_dir / "frame-%06d.png"),
        "-c:v",
        "libvpx-vp9",
        "-pix_fmt",
        "yuva420p",
        "-b:v",
        "2M",
        "-crf",
        "30",
        "-y",
        str(output),
    ]


def trim_command(source: Path, start_seconds: float, duration_seconds: float, output: Path) -> List[str]:
    return [
        _ffmpeg_binary(),
        "-ss",
        f"{start_seconds:.3f}",
        "-i",
        str(source),
        "-t",
        f"{duration_seconds:.3f}",
        "-c:v",
        "libvpx-vp9",
        "-b:v",
        "2M",
        "-y",
        str(output),
    ]


async def _run_ffmpeg(command: List[str]) -> None:
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ExportError(f"Unable to start ffmpeg: {exc}") from exc
    _, stderr = await process.communicate()
    if process.returncode != 0:
        snippet = (stderr or b"").decode("utf-8", errors="ignore").strip()[-300:]
        raise ExportError(f"ffmpeg exited with code {process.returncode}: {snippet}")


class PlaywrightRenderer:
    """Render locally in headless Chromium."""

    def __init__(self, settle_ms: Optional[int] = None) -> None:
        self.settle_ms = settings.export_settle_ms if settle_ms is None else settle_ms

    async def render(self, request: RenderRequest) -> bytes:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import async_playwright

        with tempfile.TemporaryDirectory(prefix="motiongen-") as tmp:
            workdir = Path(tmp)
            logger.info(
                "Rendering %.2fs at %dfps (%dx%d, %s)",
                request.duration_seconds,
                request.fps,
                request.width,
                request.height,
                request.mode,
            )
            try:
                async with async_playwright() as p:
                    browser = await p.chromium.launch(headless=True, args=CHROMIUM_ARGS)
                    try:
                        if request.mode == "record":
                            video_path = await self._record(browser, request, workdir)
                        else:
                            video_path = await self._capture_frames(browser, request, workdir)
                    finally:
                        await browser.close()
            except PlaywrightError as exc:
                raise ExportError(f"Browser rendering failed: {exc}") from exc
            return video_path.read_bytes()

    async def _load(self, page, request: RenderRequest, paused: bool) -> None:
        code = CodeState(html=request.html, css=request.css)
        await page.set_content(build_export_document(code, request.width, request.height, paused=paused))
        await page.evaluate("() => document.fonts.ready.then(() => true)")
        await page.wait_for_timeout(self.settle_ms)

    async def _capture_frames(self, browser, request: RenderRequest, workdir: Path) -> Path:
        frames_dir = workdir / "frames"
        frames_dir.mkdir()
        page = await browser.new_page(viewport={"width": request.width, "height": request.height})
        await self._load(page, request, paused=True)
        await page.add_script_tag(content=SCRUB_FUNCTION_JS)

        total = request.total_frames
        for frame in range(total):
            await page.evaluate("(t) => motiongenScrubTo(t)", frame / request.fps)
            await page.screenshot(path=str(frames_dir / f"frame-{frame:06d}.png"), type="png")
            if frame % request.fps == 0:
                logger.debug("Captured frame %d/%d", frame, total)

        output = workdir / "output.webm"
        await _run_ffmpeg(encode_frames_command(frames_dir, request.fps, output))
        return output

    async def _record(self, browser, request: RenderRequest, workdir: Path) -> Path:
        size = {"width": request.width, "height": request.height}
        context = await browser.new_context(viewport=size, record_video_dir=str(workdir), record_video_size=size)
        started = time.monotonic()
        page = await context.new_page()
        await self._load(page, request, paused=True)
        # the recording starts with the page; skip the load/settle lead-in when trimming
        lead_in = time.monotonic() - started
        await page.evaluate("(id) => { const el = document.getElementById(id); if (el) el.remove(); }", PAUSE_STYLE_ID)
        await page.wait_for_timeout(request.duration_seconds * 1000)
        video = page.video
        await context.close()
        if video is None:
            raise ExportError("Playwright did not produce a recording")
        raw = Path(await video.path())
        output = workdir / "output.webm"
        await _run_ffmpeg(trim_command(raw, lead_in, request.duration_seconds, output))
        return output


class RemoteRenderer:
    """Forward the request to a render server exposing ``POST /api/render``."""

    def __init__(self, base_url: str, timeout: float = 600.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, request: RenderRequest) -> bytes:
        payload = {
            "html": request.html,
            "css": request.css,
            "duration": request.duration_seconds,
            "fps": request.fps,
            "width": request.width,
            "height": request.height,
            "mode": request.mode,
        }
        try:
            response = requests.post(f"{self.base_url}/api/render", json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExportError(f"Render server unreachable: {exc}") from exc
        if response.status_code >= 400:
            snippet = (response.text or "").strip()
            if len(snippet) > 300:
                snippet = snippet[:300] + "..."
            raise ExportError(f"Render server failed ({response.status_code}): {snippet}")
        return response.content

    async def render(self, request: RenderRequest) -> bytes:
        return await asyncio.to_thread(self._post, request)


def get_renderer() -> Renderer:
    if settings.render_server_url:
        return RemoteRenderer(settings.render_server_url)
    return PlaywrightRenderer()


async def render_video(request: RenderRequest, renderer: Optional[Renderer] = None) -> bytes:
    renderer = renderer or get_renderer()
    data = await renderer.render(request)
    if not data:
        raise ExportError("Renderer returned an empty video")
    logger.info("Rendered %d bytes of video", len(data))
    return data
